import importlib
import logging
import os

from poolkeeper.app import mcp

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("poolkeeper")

# Dynamic Tool Loading
def load_modules(package: str):
    path = os.path.join(os.path.dirname(__file__), package)
    if not os.path.exists(path):
        logger.warning(f"Directory not found: {path}")
        return

    for file in sorted(os.listdir(path)):
        if file.endswith(".py") and not file.startswith("__"):
            name = file[:-3]
            try:
                importlib.import_module(f"poolkeeper.{package}.{name}")
                logger.info(f"Loaded {package}: {name}")
            except Exception as e:
                logger.error(f"Failed to load {package} {name}: {e}")

load_modules("tools")
load_modules("resources")

def main():
    mcp.run(transport=os.environ.get("MCP_TRANSPORT", "stdio"))

if __name__ == "__main__":
    main()
