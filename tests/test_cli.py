"""Tests for CLI argument parsing and commands."""

import pytest
from netacl import display
from netacl.cli import EXIT_ERROR, EXIT_OK, EXIT_REJECTED, build_parser, main

CONFIG_YAML = """\
spec:
  accessControlList:
    allow:
      - 192.168.0.0/24
    deny:
      - 192.168.0.99/32
"""

BAD_CONFIG_YAML = """\
spec:
  accessControlList:
    allow:
      - 192.168.0.0/24
      - not.an.ip
    deny:
      - 10.0.0.0/255.0.255.0
"""


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("NETACL_CONFIG_FILE", raising=False)
    monkeypatch.setattr("netacl.config.get_local_ip", lambda: "127.0.0.1")
    monkeypatch.setattr(display.console, "width", 160)


def run(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestParser:
    def setup_method(self):
        self.parser = build_parser()

    def test_check_basic(self):
        args = self.parser.parse_args(["check", "10.0.0.1"])
        assert args.command == "check"
        assert args.addresses == ["10.0.0.1"]
        assert args.allow is None
        assert args.deny is None
        assert args.config is None

    def test_check_multiple_addresses(self):
        args = self.parser.parse_args(["check", "10.0.0.1", "10.0.0.2"])
        assert args.addresses == ["10.0.0.1", "10.0.0.2"]

    def test_check_requires_address(self):
        with pytest.raises(SystemExit):
            self.parser.parse_args(["check"])

    def test_check_multiple_allow(self):
        args = self.parser.parse_args([
            "check", "10.0.0.1",
            "--allow", "192.168.0.10",
            "--allow", "10.0.0.0/8",
        ])
        assert args.allow == ["192.168.0.10", "10.0.0.0/8"]

    def test_check_allow_and_deny_combined(self):
        args = self.parser.parse_args([
            "check", "10.0.0.1",
            "--allow", "192.168.0.0/24",
            "--deny", "192.168.0.99",
        ])
        assert args.allow == ["192.168.0.0/24"]
        assert args.deny == ["192.168.0.99"]

    def test_config_option(self):
        args = self.parser.parse_args(["validate", "-c", "conf.yml"])
        assert args.command == "validate"
        assert args.config == "conf.yml"

    def test_rules_command(self):
        args = self.parser.parse_args(["rules", "--deny", "10.0.0.0/8"])
        assert args.command == "rules"
        assert args.deny == ["10.0.0.0/8"]

    def test_log_level(self):
        args = self.parser.parse_args(["--log-level", "debug", "rules"])
        assert args.log_level == "debug"

    def test_no_command_exits(self):
        assert run([]) == 0


class TestCheck:
    def test_open_acl_permits(self, capsys):
        assert run(["check", "1.2.3.4"]) == EXIT_OK
        out = capsys.readouterr().out
        assert "PERMIT" in out
        assert "\u2014" not in out

    def test_rejected_address(self, capsys):
        code = run(["check", "10.0.0.1", "192.168.0.1", "--allow", "10.0.0.0/8", "--deny", "10.0.0.0/24"])
        assert code == EXIT_REJECTED
        out = capsys.readouterr().out
        assert "REJECT" in out

    def test_malformed_address_is_rejected(self, capsys):
        assert run(["check", "not-an-ip"]) == EXIT_REJECTED
        assert "REJECT" in capsys.readouterr().out

    def test_invalid_rule_fails(self, capsys):
        assert run(["check", "10.0.0.1", "--allow", "10.0.0.0/33"]) == EXIT_ERROR
        assert "10.0.0.0/33" in capsys.readouterr().out

    def test_uses_config_file(self, tmp_path):
        path = tmp_path / "acl.yml"
        path.write_text(CONFIG_YAML)
        assert run(["check", "-c", str(path), "192.168.0.5"]) == EXIT_OK
        assert run(["check", "-c", str(path), "192.168.0.99"]) == EXIT_REJECTED
        assert run(["check", "-c", str(path), "10.0.0.1"]) == EXIT_REJECTED

    def test_uses_default_config_file(self, tmp_path):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yml").write_text(CONFIG_YAML)
        assert run(["check", "10.0.0.1"]) == EXIT_REJECTED

    def test_uses_config_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "acl.yml"
        path.write_text(CONFIG_YAML)
        monkeypatch.setenv("NETACL_CONFIG_FILE", str(path))
        assert run(["check", "192.168.0.99"]) == EXIT_REJECTED

    def test_flags_extend_config(self, tmp_path):
        path = tmp_path / "acl.yml"
        path.write_text(CONFIG_YAML)
        assert run(["check", "-c", str(path), "--allow", "10.0.0.0/8", "10.0.0.1"]) == EXIT_OK

    def test_missing_config_file(self, capsys):
        assert run(["check", "-c", "missing.yml", "10.0.0.1"]) == EXIT_ERROR
        assert "Error" in capsys.readouterr().out

    def test_mistyped_config_section_fails_cleanly(self, tmp_path, capsys):
        path = tmp_path / "acl.yml"
        path.write_text("spec:\n  dataSource: files\n")
        assert run(["check", "-c", str(path), "10.0.0.1"]) == EXIT_ERROR
        assert "dataSource" in capsys.readouterr().out

    def test_markup_in_error_is_printed_literally(self, capsys):
        assert run(["check", "-c", "[/x].yml", "10.0.0.1"]) == EXIT_ERROR
        assert "[/x].yml" in capsys.readouterr().out

    def test_does_not_write_salt(self, tmp_path):
        path = tmp_path / "acl.yml"
        path.write_text(CONFIG_YAML)
        run(["check", "-c", str(path), "192.168.0.5"])
        assert not (tmp_path / ".netacl.salt").exists()


class TestValidate:
    def test_valid_config(self, tmp_path, capsys):
        path = tmp_path / "acl.yml"
        path.write_text(CONFIG_YAML)
        main(["validate", "-c", str(path)])
        assert "All 2 rules are valid" in capsys.readouterr().out

    def test_reports_every_invalid_rule(self, tmp_path, capsys):
        path = tmp_path / "acl.yml"
        path.write_text(BAD_CONFIG_YAML)
        assert run(["validate", "-c", str(path)]) == EXIT_ERROR
        out = capsys.readouterr().out
        assert "not.an.ip" in out
        assert "255.0.255.0" in out
        assert "2 of 3 rules are invalid" in out

    def test_mistyped_rule_list(self, tmp_path, capsys):
        path = tmp_path / "acl.yml"
        path.write_text("spec:\n  accessControlList:\n    allow: 10.0.0.1\n")
        assert run(["validate", "-c", str(path)]) == EXIT_ERROR
        assert "Invalid configuration" in capsys.readouterr().out

    def test_no_config(self, capsys):
        assert run(["validate"]) == EXIT_ERROR
        assert "No configuration file found" in capsys.readouterr().out


class TestRules:
    def test_lists_rules(self, capsys):
        main(["rules", "--allow", "192.168.0.0/24", "--deny", "192.168.0.99"])
        out = capsys.readouterr().out
        assert "WHITELIST" in out
        assert "192.168.0.98/31" in out
        assert "256" in out

    def test_open(self, capsys):
        main(["rules"])
        assert "open to all" in capsys.readouterr().out
