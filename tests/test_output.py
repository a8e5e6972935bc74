"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- print_table in JSON and plain modes
- Global instance management
- Secret masking on stderr
"""

from __future__ import annotations

import json

import pytest

from deploy_gateway import output as output_module
from deploy_gateway.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("deploy_gateway.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("deploy_gateway.output._is_tty", lambda: True)


class TestOutputFormatResolution:
    def test_auto_is_plain_when_piped(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_is_rich_on_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


class TestStdoutStderrDiscipline:
    def test_data_to_stdout(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response({"requestId": "r1"})
        captured = capfd.readouterr()
        assert json.loads(captured.out) == {"requestId": "r1"}
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error", "suggest"])
    def test_diagnostics_to_stderr(self, capfd, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("negotiated bearer")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "negotiated bearer" in captured.err


class TestQuietAndVerbose:
    def test_quiet_suppresses_info_but_not_errors(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden")
        mgr.suggest("hidden")
        mgr.warning("shown warning")
        mgr.error("shown error")
        err = capfd.readouterr().err
        assert "hidden" not in err
        assert "Warning: shown warning" in err
        assert "Error: shown error" in err

    def test_debug_only_when_verbose(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("probe")
        assert capfd.readouterr().err == ""
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("probe")
        assert "[debug] probe" in capfd.readouterr().err


class TestPrintTable:
    def test_json_records(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(["Name", "ID"], [["Web", "app-1"], ["Api", "app-2"]])
        assert json.loads(capfd.readouterr().out) == [
            {"Name": "Web", "ID": "app-1"},
            {"Name": "Api", "ID": "app-2"},
        ]

    def test_plain_tsv(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_table(["Name", "ID"], [["Web", "app-1"]])
        assert capfd.readouterr().out.splitlines() == ["Name\tID", "Web\tapp-1"]


class TestGlobalInstance:
    def test_lazy_default(self):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_and_module_helpers(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.info("via helper")
        assert "via helper" in capfd.readouterr().err


class TestMasking:
    def test_registered_secret_never_reaches_stderr(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
        mgr.mask("tok-123")
        mgr.debug("GET /application with tok-123")
        mgr.error("rejected tok-123")
        err = capfd.readouterr().err
        assert "tok-123" not in err
        assert "[debug] GET /application with [REDACTED]" in err
        assert "Error: rejected [REDACTED]" in err

    def test_empty_secret_is_ignored(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.mask("")
        mgr.info("unchanged")
        assert capfd.readouterr().err.strip() == "unchanged"

    def test_payload_on_stdout_is_untouched(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.mask("snap-1")
        mgr.format_response({"id": "snap-1"})
        assert json.loads(capfd.readouterr().out) == {"id": "snap-1"}


class TestPlainResponse:
    def test_nested_values_are_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.format_response({"version": {"name": "1.2"}, "status": None})
        assert capfd.readouterr().out.splitlines() == [
            'version\t{"name": "1.2"}',
            "status\t",
        ]

    def test_none_writes_nothing(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response(None)
        assert capfd.readouterr().out == ""
