from sqlalchemy import (
    Boolean, Column, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class UserModel(Base):
    __tablename__ = "users"

    uuid = Column(String(36), primary_key=True)
    subject = Column(String(128), nullable=False, unique=True)
    email = Column(String(255), nullable=True)
    display_name = Column(String(255), nullable=True)
    organization_name = Column(String(255), nullable=True)
    organization_path = Column(String(255), nullable=False, unique=True)
    created_at = Column(String(32))     # ISO-8601, UTC
    updated_at = Column(String(32))


class LlmApiKeyModel(Base):
    __tablename__ = "llm_api_keys"

    uuid = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False)
    key_name = Column(String(255), nullable=False)
    provider = Column(String(32), nullable=False)
    encrypted_api_key = Column(Text, nullable=True)
    encryption_iv = Column(String(32), nullable=True)
    endpoint_url = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(String(32))
    updated_at = Column(String(32))


class ProjectModel(Base):
    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("user_id", "project_name", name="unique_project_per_user"),)

    uuid = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False)
    project_name = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(String(32))
    updated_at = Column(String(32))


class EndpointModel(Base):
    __tablename__ = "endpoints"
    __table_args__ = (UniqueConstraint("project_id", "endpoint_name", name="unique_endpoint_per_project"),)

    uuid = Column(String(36), primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.uuid", ondelete="CASCADE"), nullable=False)
    endpoint_name = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=False)
    endpoint_type = Column(String(64), nullable=False, default="structured_in_structured_out")
    http_method = Column(String(8), nullable=False, default="POST")
    llm_key_id = Column(String(36), ForeignKey("llm_api_keys.uuid", ondelete="RESTRICT"), nullable=False)
    input_schema = Column(Text, nullable=True)      # JSON
    output_schema = Column(Text, nullable=True)     # JSON
    instructions = Column(Text, nullable=True)
    context = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(String(32))
    updated_at = Column(String(32))


class UsageEventModel(Base):
    __tablename__ = "usage_analytics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    endpoint_id = Column(String(36), ForeignKey("endpoints.uuid", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(String(32), nullable=False, index=True)
    success = Column(Boolean, nullable=False)
    error_message = Column(Text, nullable=True)
    tokens_input = Column(Integer, nullable=True)
    tokens_output = Column(Integer, nullable=True)
    latency_ms = Column(Integer, nullable=True)
    estimated_cost_cents = Column(Integer, nullable=True)
    request_metadata = Column(Text, nullable=True)  # JSON
