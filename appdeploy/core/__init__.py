"""
appdeploy Core

Command builders, configuration discovery and the pipeline orchestrator.
"""
