import signal
from types import SimpleNamespace
from unittest.mock import patch, MagicMock
import pytest

from attachment_stripper.app_runner import AppRunner
from attachment_stripper.main import StripRunSummary


@pytest.fixture
def mock_app_runner():
    with patch("sys.argv", ["attachment-stripper", ".env"]):
        runner = AppRunner()
        yield runner


def test_args_select_config_and_query():
    runner = AppRunner(["attachment-stripper", "custom.env", "older_than:1y larger:5M"])
    assert runner.config_file == "custom.env"
    assert runner.query == "older_than:1y larger:5M"


def test_default_args():
    runner = AppRunner(["attachment-stripper"])
    assert runner.config_file == ".env"
    assert runner.query is None


@patch("attachment_stripper.app_runner.signal.signal")
def test_setup_signal_handlers(mock_signal, mock_app_runner):
    mock_app_runner.setup_signal_handlers()

    # Verify SIGINT and SIGTERM are registered
    assert mock_signal.call_count == 2
    mock_signal.assert_any_call(signal.SIGINT, mock_app_runner._signal_handler)
    mock_signal.assert_any_call(signal.SIGTERM, mock_app_runner._signal_handler)


def test_signal_handler_raises_keyboard_interrupt():
    with pytest.raises(KeyboardInterrupt):
        AppRunner._signal_handler(signal.SIGINT, None)


@patch("attachment_stripper.app_runner.Path")
def test_ensure_config_exists_when_file_present(mock_path, mock_app_runner):
    mock_path_instance = MagicMock()
    mock_path_instance.exists.return_value = True
    mock_path.return_value = mock_path_instance

    with patch.object(mock_app_runner, "_handle_missing_config_interactive") as mock_interactive, \
         patch.object(mock_app_runner, "_handle_missing_config_non_interactive") as mock_non_interactive:

        mock_app_runner.ensure_config_exists()

        mock_interactive.assert_not_called()
        mock_non_interactive.assert_not_called()


@patch("attachment_stripper.app_runner.Path")
@patch("sys.stdin.isatty", return_value=True)
def test_ensure_config_exists_interactive(mock_isatty, mock_path, mock_app_runner):
    # Config file missing, template present
    def path_side_effect(arg):
        mock = MagicMock()
        mock.exists.return_value = arg == ".env.example"
        return mock

    mock_path.side_effect = path_side_effect

    with patch.object(mock_app_runner, "_handle_missing_config_interactive") as mock_interactive, \
         patch.object(mock_app_runner, "_handle_missing_config_non_interactive") as mock_non_interactive:

        mock_app_runner.ensure_config_exists()

        mock_interactive.assert_called_once()
        mock_non_interactive.assert_not_called()


@patch("attachment_stripper.app_runner.Path")
@patch("sys.stdin.isatty", return_value=False)
def test_ensure_config_exists_non_interactive(mock_isatty, mock_path, mock_app_runner):
    mock_path.return_value.exists.return_value = False

    with patch.object(mock_app_runner, "_handle_missing_config_interactive") as mock_interactive, \
         patch.object(mock_app_runner, "_handle_missing_config_non_interactive") as mock_non_interactive:

        mock_app_runner.ensure_config_exists()

        mock_interactive.assert_not_called()
        mock_non_interactive.assert_called_once()


@patch("attachment_stripper.app_runner.os.chmod")
@patch("attachment_stripper.app_runner.shutil.copy")
@patch("builtins.input", return_value="y")
@patch("attachment_stripper.app_runner.print")
def test_interactive_copies_template(mock_print, mock_input, mock_copy, mock_chmod, mock_app_runner):
    with pytest.raises(SystemExit) as exc:
        mock_app_runner._handle_missing_config_interactive()

    assert exc.value.code == 0
    mock_copy.assert_called_once_with(".env.example", ".env")
    mock_chmod.assert_called_once_with(".env", 0o600)


@patch("attachment_stripper.app_runner.shutil.copy")
@patch("builtins.input", return_value="n")
@patch("attachment_stripper.app_runner.print")
def test_interactive_declined(mock_print, mock_input, mock_copy, mock_app_runner):
    with pytest.raises(SystemExit) as exc:
        mock_app_runner._handle_missing_config_interactive()

    assert exc.value.code == 1
    mock_copy.assert_not_called()


@patch("attachment_stripper.app_runner.print")
def test_handle_missing_config_non_interactive(mock_print, mock_app_runner):
    with patch("sys.exit") as mock_exit:
        mock_app_runner._handle_missing_config_non_interactive()
        mock_exit.assert_called_once_with(1)
        mock_print.assert_called()


@patch("attachment_stripper.utils.validators.check_default_credentials")
@patch("attachment_stripper.app_runner.Config")
def test_validate_config_success(mock_config, mock_check, mock_app_runner):
    mock_check.return_value = []
    with patch("sys.exit") as mock_exit:
        mock_app_runner.validate_config()
        mock_exit.assert_not_called()


@patch("attachment_stripper.utils.validators.check_default_credentials")
@patch("attachment_stripper.app_runner.Config")
def test_validate_config_failure(mock_config, mock_check, mock_app_runner):
    mock_check.return_value = ["Gmail token file not found: token.json"]
    with patch("sys.exit") as mock_exit:
        mock_app_runner.validate_config()
        mock_exit.assert_called_once_with(1)


@patch("attachment_stripper.app_runner.print")
@patch("attachment_stripper.app_runner.Config")
def test_validate_config_invalid_value(mock_config, mock_print, mock_app_runner):
    mock_config.return_value.validate.side_effect = ValueError("MAX_MESSAGES cannot be negative")

    with pytest.raises(SystemExit) as exc:
        mock_app_runner.validate_config()

    assert exc.value.code == 1


@patch("attachment_stripper.app_runner.print")
@patch("attachment_stripper.main.setup_logging")
@patch("attachment_stripper.main.AttachmentStripperPipeline")
@patch("attachment_stripper.app_runner.Config")
def test_start_pipeline(mock_config, mock_pipeline_class, mock_setup_logging, mock_print):
    runner = AppRunner(["attachment-stripper", ".env", "larger:20M"])
    mock_config.return_value.stripper = SimpleNamespace(dry_run=True)
    mock_pipeline_instance = mock_pipeline_class.return_value
    mock_pipeline_instance.start.return_value = StripRunSummary(query="larger:20M", matched=0)

    runner.start_pipeline()

    mock_config.assert_called_once_with(".env")
    mock_setup_logging.assert_called_once_with(mock_config.return_value.system)
    mock_pipeline_class.assert_called_once_with(mock_config.return_value)
    mock_pipeline_instance.start.assert_called_once_with("larger:20M")


@patch("attachment_stripper.app_runner.print")
def test_print_summary_lists_failures(mock_print):
    summary = StripRunSummary(
        query="size:15000000",
        matched=3,
        stripped={"a": "a2"},
        skipped=["b"],
        failed=[("c", "No boundary found")],
    )

    AppRunner.print_summary(summary)

    printed = "\n".join(str(call.args[0]) for call in mock_print.call_args_list if call.args)
    assert "matched 3 messages" in printed
    assert "c: No boundary found" in printed
