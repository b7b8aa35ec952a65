"""
Configuration management for the File Storage API.

Contains the Pydantic settings shared by the HTTP API and the S3 event handlers,
aware of the local-dev, aws-mock and aws-prod deployment modes.
"""
