from __future__ import annotations

import json

import pytest

from fixtures import FakeOpenAIFactory

from pdf_quiz import cli
from pdf_quiz.core import ai
from pdf_quiz.extraction import ExtractionError
from pdf_quiz.generation import UpstreamFailure

PAGES = ["--- Page 1 START ---\n본문\n--- Page 1 END ---"]


@pytest.fixture(autouse=True)
def reset_metadata(monkeypatch):
    """Ensure metadata.version is controllable during tests."""

    def fake_version(name: str) -> str:
        assert name == "pdf-quiz"
        return "0.0-test"

    monkeypatch.setattr(cli.metadata, "version", fake_version)


@pytest.fixture
def openai_factory(monkeypatch) -> FakeOpenAIFactory:
    factory = FakeOpenAIFactory()
    monkeypatch.setattr(ai, "OpenAI", factory)
    monkeypatch.setattr(ai, "load_dotenv", lambda: False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    return factory


@pytest.fixture
def scripted_input(monkeypatch):
    def _install(commands):
        iterator = iter(commands)
        monkeypatch.setattr(cli, "_prompt", lambda console: next(iterator))

    return _install


def test_no_args_prints_usage_and_returns_error(capsys):
    assert cli.main([]) == 2
    out = capsys.readouterr().out
    assert "Usage: pdf-quiz" in out
    assert "Available commands:" in out


def test_help_flag_and_list(capsys):
    assert cli.main(["--help"]) == 0
    assert cli.main(["list"]) == 0
    out = capsys.readouterr().out
    for name in ("serve", "extract", "quiz", "config"):
        assert name in out
    assert "(TUI)" in out


def test_help_known_and_unknown_command(capsys):
    assert cli.main(["help", "quiz"]) == 0
    assert "Run `pdf-quiz quiz --help`" in capsys.readouterr().out

    assert cli.main(["help", "bogus"]) == 2
    assert "Unknown command 'bogus'." in capsys.readouterr().err


def test_unknown_command(capsys):
    assert cli.main(["bogus"]) == 2
    assert "Unknown command 'bogus'." in capsys.readouterr().err


def test_version(capsys):
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == "0.0-test"


def test_version_handles_missing_package(monkeypatch, capsys):
    def missing(name):
        raise cli.metadata.PackageNotFoundError(name)

    monkeypatch.setattr(cli.metadata, "version", missing)
    assert cli.main(["version"]) == 0
    assert capsys.readouterr().out.strip() == "unknown"


def test_subcommand_usage_error_returns_exit_code(capsys):
    assert cli.main(["extract"]) == 2


def test_config_init_and_show(tmp_path, capsys):
    home = tmp_path / "pdf-quiz-home"

    assert cli.main(["config", "init"]) == 0
    target = home / "config" / "pdf_quiz.toml"
    assert target.is_file()
    assert str(target) in capsys.readouterr().out

    assert cli.main(["config", "init"]) == 1
    assert cli.main(["config", "init", "--force"]) == 0
    capsys.readouterr()

    target.write_text("[server]\nport = 8111\n", encoding="utf-8")
    assert cli.main(["config", "show"]) == 0
    shown = json.loads(capsys.readouterr().out)
    assert shown["server"]["port"] == 8111
    assert shown["openai"]["model"] == "gpt-4o"


def test_config_show_reports_invalid_file(tmp_path, capsys):
    bad = tmp_path / "bad.toml"
    bad.write_text("[nope]\n", encoding="utf-8")

    assert cli.main(["config", "show", "--config", str(bad)]) == 1
    assert "Unknown configuration key" in capsys.readouterr().err


def test_extract_prints_pages(monkeypatch, capsys, tmp_path):
    seen = []

    def fake_extract(path):
        seen.append(path)
        return PAGES + ["--- Page 2 START ---\n\n--- Page 2 END ---"]

    monkeypatch.setattr(cli, "extract_pages", fake_extract)

    assert cli.main(["extract", str(tmp_path / "doc.pdf")]) == 0

    out = capsys.readouterr().out
    assert "--- Page 1 START ---\n본문\n--- Page 1 END ---\n\n--- Page 2" in out
    assert seen == [tmp_path / "doc.pdf"]


def test_extract_writes_output_file(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "extract_pages", lambda path: PAGES)
    output = tmp_path / "out" / "doc.txt"

    assert cli.main(["extract", "doc.pdf", "--output", str(output)]) == 0
    assert output.read_text(encoding="utf-8") == PAGES[0] + "\n"


def test_extract_failure(monkeypatch, capsys):
    def broken(path):
        raise ExtractionError("Failed to read PDF doc.pdf: bad")

    monkeypatch.setattr(cli, "extract_pages", broken)

    assert cli.main(["extract", "doc.pdf"]) == 1
    assert "Extraction failed" in capsys.readouterr().err


def test_extract_writes_log_file(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "extract_pages", lambda path: PAGES)
    cli.main(["extract", "doc.pdf"])
    assert (tmp_path / "pdf-quiz-home" / "logs" / "pdf-quiz.log").exists()


def test_extract_logs_command_start(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "extract_pages", lambda path: PAGES)
    cli.main(["extract", "doc.pdf"])

    log_file = tmp_path / "pdf-quiz-home" / "logs" / "pdf-quiz.log"
    records = [
        json.loads(line)
        for line in log_file.read_text(encoding="utf-8").splitlines()
    ]
    started = [r for r in records if r["message"] == "Command started"]
    assert started
    assert started[-1]["logger"] == "pdf_quiz.cli"
    assert started[-1]["extra"]["command"] == "extract"


def test_quiz_in_process_flow(
    monkeypatch, capsys, openai_factory, scripted_input, valid_quiz_json
):
    monkeypatch.setattr(cli, "extract_pages", lambda path: PAGES)
    openai_factory.pending.append(valid_quiz_json)
    scripted_input(["a", "g", "q"])

    assert cli.main(["quiz", "lecture.pdf"]) == 0

    out = capsys.readouterr().out
    assert "Quiz Summary" in out
    assert "Correct 1 of 10" in out
    (call,) = openai_factory.last.calls
    assert "본문" in call["messages"][0]["content"]


def test_quiz_rejects_non_pdf(openai_factory, capsys):
    assert cli.main(["quiz", "notes.txt"]) == 1
    assert "Please choose a PDF file." in capsys.readouterr().out


def test_quiz_without_api_key_fails_at_startup(
    monkeypatch, openai_factory, capsys
):
    monkeypatch.delenv("OPENAI_API_KEY")
    assert cli.main(["quiz", "lecture.pdf"]) == 1
    out = capsys.readouterr().out
    assert "Startup failed" in out
    assert openai_factory.instances == []


def test_quiz_generation_failure(monkeypatch, openai_factory, capsys):
    monkeypatch.setattr(cli, "extract_pages", lambda path: PAGES)
    # the fake client returns empty content by default
    assert cli.main(["quiz", "lecture.pdf"]) == 1
    assert "Generation failed" in capsys.readouterr().out


def test_quiz_uses_remote_server(monkeypatch, scripted_input, capsys):
    created = []

    class FakeRemote:
        def __init__(self, base_url, *, timeout):
            self.base_url = base_url
            self.timeout = timeout
            self.closed = False
            created.append(self)

        def generate_question_set(self, texts):
            raise UpstreamFailure("Could not reach the quiz generation server.")

        def close(self):
            self.closed = True

    monkeypatch.setattr(cli, "GenerationClient", FakeRemote)
    monkeypatch.setattr(cli, "extract_pages", lambda path: PAGES)

    code = cli.main(["quiz", "lecture.pdf", "--server", "http://quiz.test/"])

    assert code == 1
    (remote,) = created
    assert remote.base_url == "http://quiz.test"
    assert remote.timeout == 180
    assert remote.closed
    assert "Could not reach" in capsys.readouterr().out


def test_quiz_server_flag_without_url_uses_config(monkeypatch):
    created = []

    class FakeRemote:
        def __init__(self, base_url, *, timeout):
            created.append(base_url)

        def generate_question_set(self, texts):
            raise UpstreamFailure()

        def close(self):
            pass

    monkeypatch.setattr(cli, "GenerationClient", FakeRemote)
    monkeypatch.setattr(cli, "extract_pages", lambda path: PAGES)

    cli.main(["quiz", "lecture.pdf", "--server"])

    assert created == ["http://127.0.0.1:8000"]


def test_serve_runs_uvicorn_with_config(monkeypatch, openai_factory):
    calls = []
    monkeypatch.setattr(
        cli.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs))
    )

    assert cli.main(["serve", "--port", "9001"]) == 0

    ((app, kwargs),) = calls
    assert kwargs == {"host": "127.0.0.1", "port": 9001, "log_level": "info"}
    assert app.state.service is not None
    assert len(openai_factory.instances) == 1


def test_serve_without_api_key(monkeypatch, openai_factory, capsys):
    monkeypatch.delenv("OPENAI_API_KEY")
    monkeypatch.setattr(
        cli.uvicorn, "run", lambda *a, **k: pytest.fail("server started")
    )

    assert cli.main(["serve"]) == 1
    assert "OPENAI_API_KEY" in capsys.readouterr().err
