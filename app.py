"""Application entry point for the Gemini Image Studio project."""

from __future__ import annotations

import argparse
from typing import Optional

import gradio as gr
import uvicorn
from fastapi import FastAPI

from config.settings import AppConfig, load_config
from modules.api.routes import create_api_app
from modules.ui.layout import build_app
from modules.utils.logging import setup_logging


def create_app(config: AppConfig) -> FastAPI:
    """Serve the forwarding endpoint and mount the Gradio UI at the root."""
    api = create_api_app(config)
    demo = build_app(config)
    demo.queue()
    return gr.mount_gradio_app(api, demo, path="/")


def main(config_path: Optional[str] = None) -> None:
    """Load configuration and launch the web server."""
    parser = argparse.ArgumentParser(description="Gemini image generator")
    parser.add_argument("--env-file", default=config_path, help="path to a .env file")
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    args = parser.parse_args()

    config = load_config(args.env_file)
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port

    logger = setup_logging(config)
    if not config.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; generation requests will fail with 500")
    logger.info("Serving on http://%s:%s (model=%s)", config.host, config.port, config.gemini_model)

    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
