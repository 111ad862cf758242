import io
import logging
import sys

from scrubdb.cli import main

DUMP = """-- Sample SQL dump with PII
INSERT INTO users (id, email, phone) VALUES (1, 'john.doe@example.com', '555-123-4567');
INSERT INTO users (id, email, phone) VALUES (2, 'jane.smith@test.com', '555-987-6543');
INSERT INTO users (id, email, phone) VALUES (3, 'john.doe@example.com', '555-555-5555');
INSERT INTO orders (id, card) VALUES (1, '4532-1234-5678-9010');
"""


def _files(tmp_path, rules: str = "custom_rules:\n  users: fake_email\n"):
    cfg = tmp_path / "scrub-db.yaml"
    cfg.write_text(rules)
    dump = tmp_path / "dump.sql"
    dump.write_text(DUMP)
    return str(cfg), str(dump), str(tmp_path / "out.sql")


def test_scrub_file(tmp_path):
    cfg, dump, out = _files(tmp_path)
    assert main(["-c", cfg, "-i", dump, "-o", out, "--seed", "1"]) == 0

    lines = open(out, encoding="utf-8").read().splitlines()
    assert len(lines) == len(DUMP.splitlines())
    assert "john.doe@example.com" not in lines[1]
    assert "555-123-4567" in lines[1]
    # same original, same replacement
    assert lines[1].split("'")[1] == lines[3].split("'")[1]
    assert lines[4] == DUMP.splitlines()[4]


def test_seed_makes_output_reproducible(tmp_path):
    cfg, dump, out = _files(tmp_path)
    other = str(tmp_path / "other.sql")
    main(["-c", cfg, "-i", dump, "-o", out, "--seed", "7"])
    main(["-c", cfg, "-i", dump, "-o", other, "--seed", "7"])
    assert open(out).read() == open(other).read()


def test_discovered_config_is_used(tmp_path, monkeypatch):
    _, dump, out = _files(tmp_path, "custom_rules:\n  users: phone\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SCRUB_DB_CONFIG", raising=False)
    assert main(["-i", dump, "-o", out]) == 0
    text = open(out).read()
    assert "555-123-4567" not in text
    assert "john.doe@example.com" in text


def test_no_config_passes_through(tmp_path, monkeypatch):
    dump = tmp_path / "dump.sql"
    dump.write_text(DUMP)
    out = tmp_path / "out.sql"
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SCRUB_DB_CONFIG", raising=False)
    assert main(["-i", str(dump), "-o", str(out)]) == 0
    assert out.read_text() == DUMP


def test_missing_config_file_fails(tmp_path):
    _, dump, out = _files(tmp_path)
    assert main(["-c", str(tmp_path / "nope.yaml"), "-i", dump, "-o", out]) == 1


def test_scan_reports_counts(tmp_path, caplog):
    _, dump, _ = _files(tmp_path)
    caplog.set_level(logging.INFO, logger="scrubdb")
    assert main(["-i", dump, "scan"]) == 0
    assert "3 lines with potential email addresses" in caplog.text
    assert "3 lines with potential phone numbers" in caplog.text
    assert "1 lines with potential credit card numbers" in caplog.text
    assert "5 total lines scanned" in caplog.text


def test_failed_run_keeps_existing_output(tmp_path):
    _, dump, out = _files(tmp_path)
    bad = tmp_path / "bad.yaml"
    bad.write_text("custom_rules:\n  - users\n")
    with open(out, "w") as fh:
        fh.write("KEEP")
    assert main(["-c", str(bad), "-i", dump, "-o", out]) == 1
    assert open(out).read() == "KEEP"


def test_scan_does_not_touch_output(tmp_path):
    _, dump, out = _files(tmp_path)
    with open(out, "w") as fh:
        fh.write("KEEP")
    assert main(["-i", dump, "-o", out, "scan"]) == 0
    assert open(out).read() == "KEEP"


def test_invalid_utf8_input_fails(tmp_path):
    cfg, dump, out = _files(tmp_path)
    with open(dump, "wb") as fh:
        fh.write(b"INSERT INTO users VALUES ('\xff\xfe');\n")
    assert main(["-c", cfg, "-i", dump, "-o", out]) == 1


def test_stdin_is_decoded_as_utf8(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SCRUB_DB_CONFIG", raising=False)
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO("café\n".encode("utf-8")), encoding="latin-1"))
    out = tmp_path / "out.sql"
    assert main(["-o", str(out)]) == 0
    assert out.read_text(encoding="utf-8") == "café\n"

    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"caf\xe9\n"), encoding="latin-1"))
    assert main(["-o", str(out)]) == 1


class _TerminalStdin(io.TextIOWrapper):
    def isatty(self):
        return True


def test_scan_reads_terminal_stdin(monkeypatch, caplog):
    monkeypatch.setattr(sys, "stdin", _TerminalStdin(io.BytesIO(b"a@example.com\n"), encoding="utf-8"))
    caplog.set_level(logging.INFO, logger="scrubdb")
    assert main(["scan"]) == 0
    assert "1 lines with potential email addresses" in caplog.text
