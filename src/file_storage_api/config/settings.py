# src/file_storage_api/config/settings.py
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOCAL_MODES = ("local-dev", "aws-mock")
VALID_MODES = ("local-dev", "aws-mock", "aws-prod")


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    The three Lambda functions read the same settings; each one only uses the
    fields it needs (the metadata updater never touches the bucket name, the
    media converter never touches the table name).

    Usage:
        from file_storage_api.config.settings import get_settings
        settings = get_settings()
        bucket_name = settings.s3_bucket_name
    """

    # Application Settings
    app_name: str = Field(
        default="file-storage-api",
        description="Application name"
    )

    # Deployment Mode
    deployment_mode: str = Field(
        default="local-dev",
        description="Deployment mode: local-dev, aws-mock, or aws-prod"
    )

    # AWS Core Settings
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL"
    )

    aws_connect_timeout: int = Field(default=5, description="botocore connect timeout (seconds)")
    aws_read_timeout: int = Field(default=30, description="botocore read timeout (seconds)")
    aws_max_attempts: int = Field(default=3, description="botocore retry attempts")

    # S3 Configuration
    s3_bucket_name: str = Field(
        default="file-storage-bucket",
        validation_alias=AliasChoices("s3_bucket_name", "S3_BUCKET_NAME", "BUCKET_NAME"),
        description="Bucket holding uploaded originals and derived thumbnails"
    )

    thumbnail_prefix: str = Field(
        default="thumbnails/",
        description="Key prefix for derived thumbnail objects"
    )

    presigned_url_expiry_seconds: int = Field(
        default=3600,
        description="Lifetime of upload, download and thumbnail URLs"
    )

    delete_thumbnail_on_delete: bool = Field(
        default=False,
        description="Also remove the derived thumbnail when a file is deleted"
    )

    # DynamoDB Configuration
    dynamodb_table_name: str = Field(
        default="file-metadata",
        validation_alias=AliasChoices("dynamodb_table_name", "DYNAMODB_TABLE_NAME", "TABLE_NAME"),
        description="Metadata table keyed by fileId"
    )

    list_files_limit: int = Field(
        default=50,
        description="Maximum number of records returned by GET /files"
    )

    # Media Conversion
    ffmpeg_path: str = Field(
        default="ffmpeg",
        description="Path to the ffmpeg binary used for video frames"
    )

    ffmpeg_timeout_seconds: int = Field(
        default=120,
        description="Hard limit for a single frame extraction"
    )

    scratch_dir: str = Field(
        default="/tmp",
        description="Directory for temporary video files"
    )

    thumbnail_size: int = Field(default=300, description="Thumbnail edge length in pixels")
    thumbnail_quality: int = Field(default=80, description="JPEG quality of thumbnails")
    video_frame_offset: str = Field(default="00:00:01", description="Timestamp of the video frame to grab")

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("deployment_mode", mode="before")
    @classmethod
    def normalize_deployment_mode(cls, v):
        """Normalize deployment mode values for backwards compatibility."""
        if v:
            mode_mapping = {
                "local-mock": "local-dev",
                "cloud": "aws-prod",
            }
            return mode_mapping.get(v, v)
        return v

    @field_validator("deployment_mode")
    @classmethod
    def validate_deployment_mode(cls, v):
        """Validate deployment mode is one of the allowed values."""
        if v not in VALID_MODES:
            raise ValueError(f"Invalid deployment_mode: {v}. Must be one of {list(VALID_MODES)}")
        return v

    @field_validator("thumbnail_prefix")
    @classmethod
    def validate_thumbnail_prefix(cls, v):
        """An empty prefix would make every object look like a thumbnail."""
        if not v:
            raise ValueError("thumbnail_prefix must not be empty")
        return v

    @model_validator(mode="after")
    def apply_local_mode_defaults(self) -> "Settings":
        """Point local modes at the moto server with mock credentials unless told otherwise."""
        if self.deployment_mode in LOCAL_MODES:
            if self.aws_endpoint_url is None:
                self.aws_endpoint_url = "http://localhost:5000"
            if self.aws_access_key_id is None:
                self.aws_access_key_id = "mock"
            if self.aws_secret_access_key is None:
                self.aws_secret_access_key = "mock"
        return self

    @property
    def is_local(self) -> bool:
        return self.deployment_mode in LOCAL_MODES

    def get_environment_dict(self) -> dict:
        """Get configuration as a dictionary suitable for a Lambda environment block.

        Returns:
            Dictionary of environment variables
        """
        env_dict = {
            'DEPLOYMENT_MODE': self.deployment_mode,
            'BUCKET_NAME': self.s3_bucket_name,
            'TABLE_NAME': self.dynamodb_table_name,
            'THUMBNAIL_PREFIX': self.thumbnail_prefix,
            'FFMPEG_PATH': self.ffmpeg_path,
            'AWS_DEFAULT_REGION': self.aws_region,
            'LOG_LEVEL': self.log_level,
        }

        # Only include AWS credentials for local/mock modes
        if self.is_local:
            env_dict.update({
                'AWS_ENDPOINT_URL': self.aws_endpoint_url or '',
                'AWS_ACCESS_KEY_ID': self.aws_access_key_id or 'mock',
                'AWS_SECRET_ACCESS_KEY': self.aws_secret_access_key or 'mock',
            })

        return env_dict

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
