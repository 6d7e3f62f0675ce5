"""
Example: Watch a WordPress tree and review changes with a local LLM

Changes reported by the watcher are collected on the event loop and sent to
Ollama in batches for a security review.

Usage:
    python examples/watch_and_analyze.py /var/www/html
"""

import asyncio
import sys
from pathlib import Path

from wordpress_mcp.analysis import ChangeAnalyzer
from wordpress_mcp.files import FileChange, FileManager, FileManagerConfig
from wordpress_mcp.llm import LLMConfig, LLMError, ProviderType, get_provider

BATCH_SECONDS = 10.0


async def review_changes(root: Path) -> None:
    manager = FileManager(
        FileManagerConfig(root_directory=root, backup_directory=root.parent / "backups")
    )
    analyzer = ChangeAnalyzer(
        get_provider(
            LLMConfig(
                provider=ProviderType.OLLAMA,
                model="qwen2.5-coder:7b",
                base_url="http://localhost:11434/v1",
            )
        )
    )

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[FileChange] = asyncio.Queue()

    # Callbacks run on the watcher thread
    manager.on_change(lambda change: loop.call_soon_threadsafe(queue.put_nowait, change))
    patterns = manager.start_watching()
    print(f"Watching {root} for {', '.join(patterns)} (Ctrl+C to stop)")

    try:
        while True:
            batch = [await queue.get()]
            await asyncio.sleep(BATCH_SECONDS)
            while not queue.empty():
                batch.append(queue.get_nowait())

            for change in batch:
                print(f"  {change}")

            try:
                analysis = await analyzer.analyze_file_changes(batch)
            except LLMError as e:
                print(f"Analysis failed: {e}")
                continue

            print(f"[{analysis.action}] {analysis.message}")
            if analysis.data:
                print(f"  {analysis.data}")
    finally:
        manager.close()
        await analyzer.close()


def main() -> None:
    root = Path(sys.argv[1] if len(sys.argv) > 1 else "./wordpress")
    try:
        asyncio.run(review_changes(root))
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == "__main__":
    main()
