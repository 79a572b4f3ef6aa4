"""DocInsight - document summaries with flagged terms, definitions and Q&A."""

from docinsight.models import (
    InlineSpan,
    Block,
    Anchor,
    Attachment,
    ChatMessage,
    BusyFlags,
    ActiveDefinition,
    SessionState,
    RenderedSpan,
    RenderedBlock,
    RenderedDocument,
)

from docinsight.logging_config import (
    setup_logging,
    get_session_logger,
    log_agent_execution,
    log_tool_execution,
)

from docinsight.error_handling import (
    DocInsightError,
    InputInvalid,
    OperationInProgress,
    ConfigurationError,
    FileIntakeFailure,
    LLMError,
    RequestFailed,
    EmptyResponse,
    RetryConfig,
    GEMINI_RETRY_CONFIG,
    retry_with_backoff,
    handle_errors,
    user_message,
)

from docinsight.config import (
    AppConfig,
    ClientConfig,
    IntakeConfig,
    load_config,
)

__version__ = "0.1.0"

__all__ = [
    # Models
    "InlineSpan",
    "Block",
    "Anchor",
    "Attachment",
    "ChatMessage",
    "BusyFlags",
    "ActiveDefinition",
    "SessionState",
    "RenderedSpan",
    "RenderedBlock",
    "RenderedDocument",
    # Logging
    "setup_logging",
    "get_session_logger",
    "log_agent_execution",
    "log_tool_execution",
    # Error Handling
    "DocInsightError",
    "InputInvalid",
    "OperationInProgress",
    "ConfigurationError",
    "FileIntakeFailure",
    "LLMError",
    "RequestFailed",
    "EmptyResponse",
    "RetryConfig",
    "GEMINI_RETRY_CONFIG",
    "retry_with_backoff",
    "handle_errors",
    "user_message",
    # Configuration
    "AppConfig",
    "ClientConfig",
    "IntakeConfig",
    "load_config",
]
