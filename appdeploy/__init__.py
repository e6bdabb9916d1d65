"""appdeploy - provision a host and deploy a containerized app from Git."""

__version__ = "1.0.0"
