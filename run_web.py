#!/usr/bin/env python3
"""Web API entry point for the agentic chatbot."""

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from agent.config import load_config
from web.app import create_app


def main():
    config_path = sys.argv[1] if len(sys.argv) > 1 else "config.json"
    config = load_config(config_path)

    print(f"\n  Agentic Chatbot - Web API")
    print(f"  Model: {config.llm.model}")
    print(f"  Endpoint: {config.llm.base_url or 'not set (demo mode)'}")
    print(f"  Listening on http://{config.web.host}:{config.web.port}\n")

    app = create_app(config)
    app.config["config_path"] = config_path
    app.run(host=config.web.host, port=config.web.port, debug=config.web.debug, threaded=True)


if __name__ == "__main__":
    main()
