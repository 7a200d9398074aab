"""Structured log message templates for session and OAuth events.

Hey future me - session problems get reported as "I'm logged out again" with
zero context. These templates make the log lines say WHAT happened, against
WHICH server, and what to check:

    🔴 OAuth Attempt Failed
    ├─ Attempt: 3f9c2a1e
    ├─ Phase: verifying_session
    ├─ Reason: Session cookie not visible after 8 attempts
    └─ 💡 Check: does the server set the auth cookie on /api/oauth/exchange-token?

Usage:
    from oriontv.infrastructure.observability.log_messages import LogMessages

    logger.warning(LogMessages.session_lost(origin="http://tv.local:3000"))
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class LogTemplate:
    """A reusable log message template.

    Field values may contain ``{placeholders}`` filled from ``format(**kwargs)``;
    values without placeholders are used verbatim (server error texts often
    contain braces, so they are never run through str.format blindly).
    """

    icon: str
    title: str
    fields: dict[str, str]
    hint: str | None = None

    def format(self, **kwargs: Any) -> str:
        """Render the template as a multi-line message."""
        lines = [f"{self.icon} {self.title}"]

        field_items = list(self.fields.items())
        for i, (key, value_template) in enumerate(field_items):
            prefix = "└─" if i == len(field_items) - 1 and not self.hint else "├─"
            lines.append(f"{prefix} {key}: {self._fill(value_template, kwargs)}")

        if self.hint:
            lines.append(f"└─ 💡 {self._fill(self.hint, kwargs)}")

        return "\n".join(lines)

    @staticmethod
    def _fill(template: str, values: dict[str, Any]) -> str:
        if not values:
            return template
        try:
            return template.format(**values)
        except (KeyError, IndexError, ValueError) as e:
            return f"{template} <missing: {e}>"


class LogMessages:
    """Collection of standardized log message templates for the session sync."""

    @staticmethod
    def session_lost(origin: str, hint: str | None = None) -> str:
        """User was logged in, the auth cookie is gone now."""
        return LogTemplate(
            icon="⚠️",
            title="Server Session Lost",
            fields={"Server": origin},
            hint=hint or "Cookie expired or was revoked server-side; login prompt shown",
        ).format()

    @staticmethod
    def session_check_failed(origin: str, error: str, forced_prompt: bool) -> str:
        """check_session hit an error and downgraded to logged-out."""
        return LogTemplate(
            icon="🔴",
            title="Session Check Failed",
            fields={
                "Server": origin,
                "Reason": error,
                "Login prompt": "shown" if forced_prompt else "unchanged",
            },
        ).format()

    @staticmethod
    def oauth_failed(
        attempt_id: str,
        phase: str,
        reason: str,
        hint: str | None = None,
    ) -> str:
        """An OAuth attempt ended in FAILED."""
        return LogTemplate(
            icon="🔴",
            title="OAuth Attempt Failed",
            fields={"Attempt": attempt_id, "Phase": phase, "Reason": reason},
            hint=hint,
        ).format()

    @staticmethod
    def oauth_completed(attempt_id: str, attempts: int, elapsed_ms: float) -> str:
        """An OAuth attempt reached COMPLETED."""
        return LogTemplate(
            icon="✅",
            title="OAuth Login Completed",
            fields={
                "Attempt": attempt_id,
                "Cookie visible after": f"{attempts} poll(s), {elapsed_ms:.0f}ms",
            },
        ).format()

    @staticmethod
    def connection_failed(service: str, target: str, error: str | None = None) -> str:
        """Server could not be reached."""
        fields = {"Service": service, "Target": target}
        if error:
            fields["Reason"] = error
        return LogTemplate(
            icon="🔴",
            title=f"{service} Connection Failed",
            fields=fields,
            hint=f"Check that {target} is reachable from this device",
        ).format()
