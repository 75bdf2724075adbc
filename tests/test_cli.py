import pytest

from codechat import cli
from codechat.errors import CompletionError
from codechat.history import Transcript

from conftest import ScriptedInput


class FakeClient:
    """Completion client double that replays canned replies or failures."""

    model = "gpt-4o"

    def __init__(self, *outcomes):
        self._outcomes = list(outcomes)
        self.sent = []

    def send(self, transcript):
        self.sent.append(transcript.snapshot())
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def run_session(client, *lines):
    transcript = Transcript("sys")
    session = cli.ChatSession(client, transcript, ScriptedInput(*lines).read)
    return session.run(), transcript


def test_exit_first_input(capsys):
    client = FakeClient()
    code, transcript = run_session(client, "exit")
    assert code == 0
    assert len(transcript) == 1
    assert client.sent == []
    assert "Goodbye" in capsys.readouterr().out


@pytest.mark.parametrize("line", ["exit", "Exit", "  EXIT  "])
def test_exit_is_case_and_whitespace_insensitive(line):
    client = FakeClient()
    code, transcript = run_session(client, line, "never read")
    assert code == 0
    assert client.sent == []


def test_end_of_input_ends_session(capsys):
    code, transcript = run_session(FakeClient())
    assert code == 0
    assert "Goodbye" in capsys.readouterr().out


@pytest.mark.parametrize("line", ["", "   ", "\t"])
def test_blank_input_is_ignored(line, capsys):
    client = FakeClient()
    code, transcript = run_session(client, line, "exit")
    assert len(transcript) == 1
    assert client.sent == []
    assert "Please type a question" in capsys.readouterr().out


def test_successful_turns_alternate(capsys):
    client = FakeClient("one", "two")
    code, transcript = run_session(client, "  first  ", "second", "exit")
    assert len(transcript) == 1 + 2 * 2
    assert [m.role for m in transcript] == ["system", "user", "assistant", "user", "assistant"]
    assert transcript.snapshot()[1].content == "first"
    out = capsys.readouterr().out
    assert "Bot: one" in out
    assert "Bot: two" in out


def test_request_sees_the_user_turn():
    client = FakeClient("reply")
    run_session(client, "hello", "exit")
    assert client.sent[0][-1].role == "user"
    assert client.sent[0][-1].content == "hello"


def test_rate_limited_turn_keeps_only_user_message(capsys):
    client = FakeClient(CompletionError("Error code: 429", status_code=429))
    code, transcript = run_session(client, "hello", "exit")
    assert code == 0
    assert len(transcript) == 2
    assert transcript.snapshot()[-1].role == "user"
    assert "Rate Limit Reached" in capsys.readouterr().err


def test_failed_user_message_is_resent_on_next_turn():
    client = FakeClient(CompletionError("boom", status_code=500), "recovered")
    code, transcript = run_session(client, "first", "second", "exit")
    assert [m.content for m in client.sent[1]] == ["sys", "first", "second"]
    assert [m.role for m in transcript] == ["system", "user", "user", "assistant"]


@pytest.mark.parametrize(
    "status, notice",
    [
        (401, "Authentication Error"),
        (500, "Server Error"),
        (None, "Unexpected Error: socket closed"),
        (418, "Unexpected Error: socket closed"),
    ],
)
def test_failure_notices(status, notice, capsys):
    client = FakeClient(CompletionError("socket closed", status_code=status))
    run_session(client, "hello", "exit")
    assert notice in capsys.readouterr().err


class RecordingClientFactory:
    def __init__(self):
        self.instances = []

    def __call__(self, settings, *, api_key):
        client = FakeClient()
        client.model = settings.model
        client.api_key = api_key
        self.instances.append(client)
        return client


def launch_args(tmp_path, env_text=None):
    env_file = tmp_path / ".env"
    if env_text is not None:
        env_file.write_text(env_text, encoding="utf-8")
    return ["--env-file", str(env_file), "--config-file", str(tmp_path / "settings.yaml")]


def test_missing_token_exits_without_network(tmp_path, monkeypatch, capsys):
    factory = RecordingClientFactory()
    monkeypatch.setattr(cli, "CompletionClient", factory)
    with pytest.raises(SystemExit) as excinfo:
        cli.launch(launch_args(tmp_path, "# no token here\n"))
    assert excinfo.value.code == 1
    assert factory.instances == []
    assert "GITHUB_TOKEN=your_token_here" in capsys.readouterr().err


def test_missing_env_file_and_token_exits(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(cli, "CompletionClient", RecordingClientFactory())
    with pytest.raises(SystemExit) as excinfo:
        cli.launch(launch_args(tmp_path))
    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "Could not read" in err
    assert "GITHUB_TOKEN" in err


def test_launch_exit_scenario(tmp_path, monkeypatch, capsys):
    factory = RecordingClientFactory()
    monkeypatch.setattr(cli, "CompletionClient", factory)
    monkeypatch.setattr(cli, "InputManager", lambda: ScriptedInput("exit"))
    with pytest.raises(SystemExit) as excinfo:
        cli.launch(launch_args(tmp_path, "GITHUB_TOKEN=abc123\n"))
    assert excinfo.value.code == 0
    assert factory.instances[0].api_key == "abc123"
    assert factory.instances[0].sent == []
    out = capsys.readouterr().out
    assert "Coding Assistant" in out
    assert "Goodbye" in out


def test_launch_rejects_invalid_settings_file(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "CompletionClient", RecordingClientFactory())
    args = launch_args(tmp_path, "GITHUB_TOKEN=abc123\n")
    (tmp_path / "settings.yaml").write_text("- not\n- a mapping\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.launch(args)
    assert excinfo.value.code == 1


def test_interrupt_exits_with_130(tmp_path, monkeypatch, capsys):
    class Interrupting:
        def read(self):
            raise KeyboardInterrupt

    monkeypatch.setattr(cli, "CompletionClient", RecordingClientFactory())
    monkeypatch.setattr(cli, "InputManager", Interrupting)
    with pytest.raises(SystemExit) as excinfo:
        cli.launch(launch_args(tmp_path, "GITHUB_TOKEN=abc123\n"))
    assert excinfo.value.code == 130
    assert "Interrupted" in capsys.readouterr().err
