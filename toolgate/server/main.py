"""CLI argument parsing and uvicorn entry point."""

import logging
import os


def main():
    import argparse
    import uvicorn

    from ..config import ToolGateConfig
    from ..session import AgentSession
    from .app import create_app

    parser = argparse.ArgumentParser(description="toolgate confirmation API server")
    parser.add_argument("--config", default=None, help="Path to config.yaml (default: $TOOLGATE_CONFIG)")
    parser.add_argument("--session-id", default="default")
    parser.add_argument("--host", default=os.getenv("TOOLGATE_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("TOOLGATE_PORT", "8000")))
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s: %(name)s - %(message)s",
    )

    config = ToolGateConfig.load(args.config)
    session = AgentSession.from_config(config, session_id=args.session_id)
    api = create_app(session, api_key=config.server.api_key, manage_session=True)

    uvicorn.run(api, host=args.host, port=args.port)
