#!/usr/bin/env python3
"""
Image Receiver Script
=====================

Runs a PixelSocket client against a live server and saves what it receives.

This script:
    1. Loads settings (YAML + environment) and applies CLI overrides
    2. Connects and saves images until closed or the duration elapses
    3. Logs connection stats at a fixed interval
    4. Reports a final summary

Usage:
    python scripts/receive_images.py --url ws://localhost:8188/ws
    python scripts/receive_images.py --duration 300 --save-dir ./images
    python scripts/receive_images.py --no-reconnect --no-save
"""

import argparse
import asyncio
import logging
import sys
import time
from typing import Optional

from pixel_socket import PixelSocket
from pixel_socket.config import load_config, setup_logging


logger = logging.getLogger("pixel_socket.receiver")


async def run_receiver(
    client: PixelSocket,
    duration: Optional[float],
    report_interval: float,
) -> dict:
    """
    Run the client until it closes or the duration elapses.

    Args:
        client: Configured, unconnected client
        duration: Seconds to run (None = until closed)
        report_interval: Seconds between progress reports

    Returns:
        Final stats dict
    """
    logger.info("=" * 60)
    logger.info(f"Server URL: {client.url}")
    logger.info(f"Save directory: {client.config.save_directory}")
    logger.info(f"Duration: {duration if duration else 'until closed'}")
    logger.info("=" * 60)

    start_time = time.time()
    await client.connect()

    async def report() -> None:
        while True:
            await asyncio.sleep(report_interval)
            stats = client.get_stats()
            logger.info("-" * 40)
            logger.info(f"Progress Report (elapsed: {time.time() - start_time:.0f}s)")
            logger.info(f"  State: {client.state.value}")
            logger.info(f"  Images received: {stats.images_received}")
            logger.info(f"  Bytes received: {stats.bytes_received}")
            logger.info(f"  Reconnect attempts: {stats.reconnect_attempts}")

    report_task = asyncio.create_task(report())
    try:
        await asyncio.wait_for(client.wait_closed(), timeout=duration)
    except asyncio.TimeoutError:
        logger.info(f"Duration ({duration}s) reached")
    finally:
        report_task.cancel()
        try:
            await report_task
        except asyncio.CancelledError:
            pass
        await client.disconnect()

    total_time = time.time() - start_time
    stats = client.get_stats()

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {total_time:.1f} seconds")
    logger.info(f"Images received: {stats.images_received}")
    logger.info(f"Bytes received: {stats.bytes_received}")
    logger.info("=" * 60)

    return {"duration": total_time, **stats.to_dict()}


def main():
    parser = argparse.ArgumentParser(
        description="Receive and save images from a WebSocket image server"
    )
    parser.add_argument("--config", type=str, default=None, help="Path to YAML config")
    parser.add_argument("--url", type=str, default=None, help="WebSocket URL")
    parser.add_argument("--save-dir", type=str, default=None, help="Directory for images")
    parser.add_argument("--no-save", action="store_true", help="Do not write images")
    parser.add_argument("--no-reconnect", action="store_true", help="Disable auto-reconnect")
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Seconds to run (default: until the connection closes)",
    )
    parser.add_argument(
        "--report-interval",
        type=float,
        default=30,
        help="Seconds between progress reports (default: 30)",
    )

    args = parser.parse_args()

    settings = load_config(args.config)
    setup_logging(settings)

    overrides = {}
    if args.url:
        overrides["url"] = args.url
    if args.save_dir:
        overrides["save_directory"] = args.save_dir
    if args.no_save:
        overrides["save_images"] = False
    if args.no_reconnect:
        overrides["auto_reconnect"] = False
    config = settings.client.model_copy(update=overrides)

    client = PixelSocket.from_config(
        config,
        on_error=lambda error: logger.warning(f"{type(error).__name__}: {error}"),
    )

    try:
        result = asyncio.run(run_receiver(client, args.duration, args.report_interval))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)

    sys.exit(0 if result["images_received"] > 0 else 1)


if __name__ == "__main__":
    main()
