import asyncio

from blockwatch.clients.rpc import RPC
from blockwatch.core.config import PipelineConfig
from blockwatch.log_setup import configure_logging
from blockwatch.orchestration.orchestrator import watch_blocks

NODE_URL = "http://localhost:8545"


async def main():
    configure_logging("info", json_logs=True)

    # start two blocks behind the current tip so records show up right away
    rpc = RPC(NODE_URL)
    head = await rpc.latest_block()
    await rpc.aclose()

    config = PipelineConfig(
        node_url=NODE_URL,
        metadata_url="https://api.payload.de/block_info?block={block}",
        start_height=head - 2,
        not_ready_retry_s=12,
        max_not_ready_retries=10,
    )
    stats = await watch_blocks(config)  # Ctrl-C stops discovery and drains the queue
    print(stats)


asyncio.run(main())
