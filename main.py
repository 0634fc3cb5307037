"""Transmission — dev launcher. Starts the chat backend in watch mode."""

import argparse
import os
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="Transmission dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--delay-mode", choices=["instant", "fixed", "dynamic"], default=None,
                        help="Default message pacing mode")
    parser.add_argument("--compile", type=Path, action="append", default=[], metavar="TWEE",
                        help="Compile a Twee story into the data dir before starting (repeatable)")
    args = parser.parse_args()

    # Build env for the server process so it picks up the same settings
    env = os.environ.copy()
    if args.data_dir:
        env["DATA_DIR"] = str(args.data_dir.resolve())
    if args.delay_mode:
        env["TRANSMISSION_DELAY_MODE"] = args.delay_mode

    if args.compile:
        from backend import storage
        from transmission.compiler import compile_story

        storage.init_storage(args.data_dir or Path(env.get("DATA_DIR", ROOT / "data")))
        for path in args.compile:
            result = compile_story(path.read_text(encoding="utf-8"))
            storage.save_dialogue(path.stem, result.graph)
            print(f"Compiled {path} → {path.stem} ({result.node_count} nodes)")

    proc: subprocess.Popen | None = None

    def shutdown(*_):
        print("\nShutting down...")
        if proc is not None:
            proc.terminate()
            proc.wait()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    print(f"Starting backend on http://localhost:{PORT} ...")
    proc = subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "backend.app:app", "--reload", "--host", HOST, "--port", PORT],
        cwd=ROOT, env=env,
    )
    proc.wait()


if __name__ == "__main__":
    main()
