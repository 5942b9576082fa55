from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from blockwatch.cli import cli
from blockwatch.core.errors import TransportError
from blockwatch.core.models import PipelineStats


def test_head_prints_height(mock_rpc) -> None:
    mock_rpc.latest_block.return_value = 17785601
    with patch("blockwatch.cli.RPC", return_value=mock_rpc):
        result = CliRunner().invoke(cli, ["head", "--node-url", "http://localhost:8545"])
    assert result.exit_code == 0
    assert result.output.strip() == "17785601"
    mock_rpc.aclose.assert_awaited_once()


def test_head_reports_rpc_errors(mock_rpc) -> None:
    mock_rpc.latest_block.side_effect = TransportError("connection refused")
    with patch("blockwatch.cli.RPC", return_value=mock_rpc):
        result = CliRunner().invoke(cli, ["head", "--node-url", "http://localhost:8545"])
    assert result.exit_code == 1
    assert "connection refused" in result.output


def test_watch_rejects_url_without_placeholder() -> None:
    result = CliRunner().invoke(
        cli,
        [
            "watch",
            "--node-url",
            "http://localhost:8545",
            "--metadata-url",
            "https://meta.example/latest",
            "--start-height",
            "17785600",
        ],
    )
    assert result.exit_code == 2
    assert "{block}" in result.output


def test_watch_builds_config_from_env() -> None:
    stats = PipelineStats(emitted=3, skipped=1, last_emitted=17785603)
    watch = AsyncMock(return_value=stats)
    env = {
        "BLOCKWATCH_NODE_URL": "http://node:8545",
        "BLOCKWATCH_METADATA_URL": "https://meta.example/block/{block}",
        "BLOCKWATCH_START_HEIGHT": "17785600",
        "BLOCKWATCH_RETRY_DELAY": "6",
    }
    with (
        patch("blockwatch.orchestration.orchestrator.watch_blocks", watch),
        patch("blockwatch.cli.configure_logging") as configure,
    ):
        result = CliRunner().invoke(cli, ["watch", "--max-retries", "5"], env=env)

    assert result.exit_code == 0, result.output
    config = watch.await_args.args[0]
    assert config.node_url == "http://node:8545"
    assert config.start_height == 17785600
    assert config.not_ready_retry_s == 6.0
    assert config.max_not_ready_retries == 5
    configure.assert_called_once_with("info", json_logs=True)
