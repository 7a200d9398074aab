"""Tests for the structured log message templates."""

from oriontv.infrastructure.observability.log_messages import LogMessages, LogTemplate


class TestLogTemplate:
    def test_tree_layout_with_hint(self):
        text = LogTemplate(
            icon="🔴", title="Broken", fields={"A": "1", "B": "2"}, hint="fix it"
        ).format()

        assert text.splitlines() == ["🔴 Broken", "├─ A: 1", "├─ B: 2", "└─ 💡 fix it"]

    def test_last_field_closes_tree_without_hint(self):
        text = LogTemplate(icon="✅", title="Done", fields={"A": "1", "B": "2"}).format()

        assert text.splitlines()[-1] == "└─ B: 2"

    def test_placeholders_are_filled(self):
        text = LogTemplate(icon="i", title="T", fields={"Server": "{origin}"}).format(
            origin="http://tv.local:3000"
        )

        assert "├─" not in text
        assert "└─ Server: http://tv.local:3000" in text

    def test_braces_without_values_stay_verbatim(self):
        text = LogTemplate(icon="i", title="T", fields={"Reason": "bad json {oops}"}).format()

        assert "bad json {oops}" in text

    def test_missing_placeholder_is_reported(self):
        text = LogTemplate(icon="i", title="T", fields={"X": "{missing}"}).format(other=1)

        assert "<missing:" in text


class TestLogMessages:
    def test_oauth_failed(self):
        text = LogMessages.oauth_failed(
            attempt_id="3f9c2a1e", phase="verifying_session", reason="no cookie {x}"
        )

        assert text.startswith("🔴 OAuth Attempt Failed")
        assert "Attempt: 3f9c2a1e" in text
        assert "Phase: verifying_session" in text
        assert "Reason: no cookie {x}" in text

    def test_session_lost_has_default_hint(self):
        text = LogMessages.session_lost(origin="http://tv.local:3000")

        assert "Server: http://tv.local:3000" in text
        assert "💡" in text

    def test_session_check_failed_prompt_flag(self):
        assert "Login prompt: shown" in LogMessages.session_check_failed(
            "http://tv.local:3000", "Unauthorized", forced_prompt=True
        )
        assert "Login prompt: unchanged" in LogMessages.session_check_failed(
            "http://tv.local:3000", "offline", forced_prompt=False
        )

    def test_oauth_completed(self):
        text = LogMessages.oauth_completed("abc", attempts=3, elapsed_ms=1812.4)

        assert "3 poll(s), 1812ms" in text

    def test_connection_failed_reason_is_optional(self):
        without = LogMessages.connection_failed("Server config", "http://tv.local:3000")
        with_reason = LogMessages.connection_failed(
            "Server config", "http://tv.local:3000", error="timed out"
        )

        assert "Reason" not in without
        assert "Reason: timed out" in with_reason
