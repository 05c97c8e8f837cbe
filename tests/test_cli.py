from unittest.mock import AsyncMock, patch

import pytest

from src import cli
from src.core.exceptions import ConfigurationError
from src.schemas.assets import MirrorStats


class TestFormatSummary:
    def test_with_savings(self) -> None:
        stats = MirrorStats(processed=2, skipped=1, errors=0, original_total_size=300000, optimized_total_size=130000)
        summary = cli.format_summary(stats)
        assert "Processed: 2 images" in summary
        assert "Skipped: 1 images" in summary
        assert "Errors: 0 images" in summary
        assert "Original total size: 0.29MB" in summary
        assert "Optimized total size: 0.12MB" in summary
        assert "Total savings: 56.7%" in summary

    def test_without_processed_images(self) -> None:
        summary = cli.format_summary(MirrorStats(skipped=4))
        assert "Skipped: 4 images" in summary
        assert "Total savings" not in summary


class TestMain:
    def test_default_collections(self, capsys: pytest.CaptureFixture[str]) -> None:
        run_mirror = AsyncMock(return_value=MirrorStats(processed=1, original_total_size=10, optimized_total_size=5))
        with patch.object(cli, "run_mirror", run_mirror), patch.object(cli, "configure_logging"):
            assert cli.main([]) == 0
        assert run_mirror.await_args.args[1] == ["good-websites", "stack", "music"]
        assert "Total savings: 50.0%" in capsys.readouterr().out

    def test_selected_collections(self) -> None:
        run_mirror = AsyncMock(return_value=MirrorStats())
        with patch.object(cli, "run_mirror", run_mirror), patch.object(cli, "configure_logging"):
            assert cli.main(["writing", "ama"]) == 0
        assert run_mirror.await_args.args[1] == ["writing", "ama"]

    def test_configuration_error_exits_non_zero(self, capsys: pytest.CaptureFixture[str]) -> None:
        run_mirror = AsyncMock(side_effect=ConfigurationError("Missing required environment variables: COS_BUCKET"))
        with patch.object(cli, "run_mirror", run_mirror), patch.object(cli, "configure_logging"):
            assert cli.main(["stack"]) == 1
        assert "Optimization complete" not in capsys.readouterr().out

    def test_json_logs_from_settings(self) -> None:
        run_mirror = AsyncMock(return_value=MirrorStats())
        with (
            patch.object(cli, "run_mirror", run_mirror),
            patch.object(cli, "configure_logging") as configure,
            patch.object(cli.settings, "log_json", True),
        ):
            cli.main(["--log-level", "debug"])
        configure.assert_called_once_with("debug", json_logs=True)

    def test_unknown_collection_rejected(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["photos"])
        assert exc_info.value.code == 2
