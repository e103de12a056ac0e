"""
LLM interaction logging for language model API calls.

Provides detailed logging of model requests and responses for debugging,
cost tracking, and auditing purposes.
"""

import json
import logging
import logging.handlers
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from workflowsage.config import Settings, settings as default_settings
from workflowsage.llm.transcript import ConversationTranscript

if TYPE_CHECKING:
    from workflowsage.llm.base import ModelReply

logger = logging.getLogger(__name__)


class LLMLogger:
    """
    Logger for language model API interactions.

    Logs requests, responses, token usage, and errors to a separate log file
    when LLM logging is enabled in configuration.
    """

    def __init__(self, config: Optional[Settings] = None):
        """Initialize LLM logger with separate file handler."""
        self.config = config or default_settings
        self.llm_logger = logging.getLogger("workflowsage.llm.interactions")
        self.enabled = self.config.llm_logging_enabled
        self._handler_ready = False

    def _setup_file_handler(self) -> None:
        """Setup dedicated file handler for LLM logs."""
        if self._handler_ready or not self.config.log_file_enabled:
            return

        llm_dir = self.config.log_directory / "llm"
        llm_dir.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            llm_dir / "requests.log",
            maxBytes=self.config.log_max_bytes,
            backupCount=self.config.log_backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(
            logging.Formatter(
                fmt="[%(asctime)s] [%(levelname)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

        self.llm_logger.addHandler(handler)
        self.llm_logger.setLevel(logging.INFO)
        self.llm_logger.propagate = False  # Don't propagate to root logger
        self._handler_ready = True

    def log_request(
        self,
        provider: str,
        model: str,
        system_prompt: str,
        transcript: ConversationTranscript,
        max_tokens: int,
        temperature: float,
        tool_names: Optional[list[str]] = None,
    ) -> str:
        """
        Log model request details.

        Returns:
            str: Request ID for correlating with response
        """
        request_id = f"{provider}_{int(time.time() * 1000)}"
        if not self.enabled or not self.config.llm_log_requests:
            return request_id

        self._setup_file_handler()

        last_text = ""
        for entry in reversed(transcript.entries):
            if entry.text:
                last_text = entry.text
                break

        log_entry = {
            "type": "request",
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "provider": provider,
            "model": model,
            "message_count": len(transcript),
            "parameters": {
                "max_tokens": max_tokens,
                "temperature": temperature,
                "tools": tool_names or [],
            },
            "system_prompt_length": len(system_prompt),
            "last_message_preview": last_text[:500],
        }

        self.llm_logger.info(f"REQUEST: {json.dumps(log_entry)}")
        return request_id

    def log_response(self, request_id: str, reply: "ModelReply") -> None:
        """Log model reply details."""
        if not self.enabled or not self.config.llm_log_responses:
            return

        self._setup_file_handler()

        try:
            content = reply.text
            log_entry = {
                "type": "response",
                "request_id": request_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "model": reply.model,
                "stop_reason": reply.stop_reason,
                "content_length": len(content),
                "tool_requests": [req.name for req in reply.tool_requests],
                "duration_ms": round(reply.duration_ms, 2),
            }

            if self.config.llm_log_tokens:
                log_entry["tokens"] = {
                    "prompt": reply.prompt_tokens,
                    "completion": reply.completion_tokens,
                    "total": reply.prompt_tokens + reply.completion_tokens,
                }

            if content:
                log_entry["content_preview"] = (
                    content[:200] + "..." if len(content) > 200 else content
                )

            self.llm_logger.info(f"RESPONSE: {json.dumps(log_entry)}")

        except Exception as e:
            logger.error(f"Failed to log LLM response: {e}", exc_info=True)

    def log_error(self, request_id: str, error: Exception) -> None:
        """Log model API error."""
        if not self.enabled:
            return

        self._setup_file_handler()

        log_entry = {
            "type": "error",
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error_type": type(error).__name__,
            "error_message": str(error),
        }

        self.llm_logger.error(f"ERROR: {json.dumps(log_entry)}")


# Global LLM logger instance
llm_logger = LLMLogger()
