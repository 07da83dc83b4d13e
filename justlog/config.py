"""
Configuration for JustLog.

Values come from environment variables. A .env file is honoured for local
development; cloud deployments provide the variables directly.
"""
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Runtime settings, built once by the process entry point."""
    aws_region: str = Field("us-east-1", description="AWS region of the DynamoDB table")
    table_name: str = Field("justlog", description="Base DynamoDB table name")
    table_prefix: str = Field("", description="Environment suffix, e.g. 'staging'")
    endpoint_url: Optional[str] = Field(None, description="DynamoDB endpoint override (DynamoDB Local)")
    dev_user: Optional[str] = Field(None, description="Fixed user id that bypasses API key auth")
    log_level: str = Field("INFO", description="Logging level name")
    port: int = Field(8088, description="Port of the local streamable HTTP server")

    @property
    def full_table_name(self) -> str:
        return f"{self.table_name}-{self.table_prefix}" if self.table_prefix else self.table_name

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()

        # Boto3 looks for AWS_DEFAULT_REGION first, then AWS_REGION
        region = os.getenv("AWS_DEFAULT_REGION") or os.getenv("AWS_REGION") or "us-east-1"
        return cls(
            aws_region=region,
            table_name=os.getenv("TABLE_NAME", "justlog"),
            table_prefix=os.getenv("TABLE_PREFIX", ""),
            endpoint_url=os.getenv("DYNAMODB_ENDPOINT_URL") or None,
            dev_user=os.getenv("DEV_USER") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=int(os.getenv("PORT", "8088")),
        )
