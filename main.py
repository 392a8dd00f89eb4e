"""
Desa Chat Formatter - renders village portal chatbot replies from the command line.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from internal.config.manager import ConfigManager
from lib.chat_markup import MessageFormatter, createRenderCache
from lib.logging_utils import initLogging

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("html", "text", "json")


class ChatFormatterApp:
    """Wires configuration, logging and the formatter together."""

    def __init__(self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None):
        self.configManager = ConfigManager(configPath, configDirs, required=False)

        initLogging(self.configManager.getLoggingConfig())

        self.formatter = MessageFormatter(
            self.configManager.getFormatterOptions(),
            cache=createRenderCache(self.configManager.getCacheConfig()),
        )
        self.defaultOutput = self.configManager.getFormatterConfig().get("output", "html")

    def render(self, message: str, outputFormat: Optional[str] = None) -> str:
        """Format a message and render it in the requested output format."""
        outputFormat = outputFormat or self.defaultOutput
        match outputFormat:
            case "html":
                return self.formatter.format_to_html(message)
            case "text":
                return self.formatter.format_to_text(message)
            case "json":
                return json.dumps(self.formatter.get_tree_json(message), ensure_ascii=False, indent=2)
            case _:
                raise ValueError(f"Unknown output format: {outputFormat}")


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Desa Chat Formatter - render chatbot messages as HTML, plain text or JSON tree"
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times)",
    )
    parser.add_argument(
        "-i",
        "--input",
        default=None,
        help="File with the message to format (default: stdin)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="File to write the rendering to (default: stdout)",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default: [formatter] output from config, else html)",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit",
    )
    args = parser.parse_args(argv)
    args.config = os.path.abspath(args.config)
    if args.config_dir:
        args.config_dir = [os.path.abspath(dir_path) for dir_path in args.config_dir]

    return args


def prettyPrintConfig(configManager: ConfigManager):
    """Pretty-print the loaded configuration."""
    print("=== Desa Chat Formatter Configuration ===")
    print()
    try:
        print(json.dumps(configManager.config, indent=2, ensure_ascii=False, sort_keys=True))
    except (TypeError, ValueError) as e:
        # Fallback to basic dict representation if JSON serialization fails
        logger.warning(f"Could not serialize config as JSON: {e}")
        for key, value in sorted(configManager.config.items()):
            print(f"{key}: {value}")


def readMessage(inputPath: Optional[str]) -> str:
    if inputPath is None:
        return sys.stdin.read()
    with open(inputPath, "rt", encoding="utf-8") as f:
        return f.read()


def writeOutput(outputPath: Optional[str], rendered: str) -> None:
    if outputPath is None:
        sys.stdout.write(rendered)
        sys.stdout.write("\n")
        return
    with open(outputPath, "wt", encoding="utf-8") as f:
        f.write(rendered)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    try:
        if args.print_config:
            prettyPrintConfig(ConfigManager(args.config, args.config_dir, required=False))
            return 0

        app = ChatFormatterApp(configPath=args.config, configDirs=args.config_dir)
        writeOutput(args.output, app.render(readMessage(args.input), args.format))
        return 0
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 0
    except Exception as e:
        logger.error(f"Formatting failed: {e}")
        logger.exception(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
