from planforge import cli
from planforge.config import Settings


def test_apply_overrides_maps_flags(tmp_path):
    args = cli.parse_args(
        [
            "--workspace",
            str(tmp_path),
            "--context-window",
            "8000",
            "methodical",
            "task",
            "--desire",
            "outcome",
            "--allow",
            "calculator",
            "--allow",
            "read_asset",
        ]
    )
    settings = cli.apply_overrides(Settings(OPENAI_API_KEY=None), args)
    assert settings.workspace_dir == str(tmp_path)
    assert settings.context_window_tokens == 8000
    assert settings.allow_tool_names == ["calculator", "read_asset"]


def test_employee_run_against_mock_model_fails_cleanly(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    code = cli.main(["--workspace", str(tmp_path), "--trace", "employee", "say hi"])
    captured = capsys.readouterr()
    assert code == 1
    assert "PARSE_ERROR" in captured.err
    assert list((tmp_path / "traces").glob("*.json"))
