import os
import json
import logging

logger = logging.getLogger(__name__)


# ========= SEARCH ENGINES =========
SEARCH_ENGINES = {
    "duck_html": ("DuckDuckGo HTML", "https://duckduckgo.com/html/?q="),
    "duck_lite": ("DuckDuckGo Lite", "https://lite.duckduckgo.com/lite/?q="),
    "brave": ("Brave Search", "https://search.brave.com/search?q="),
    "bing": ("Bing", "https://www.bing.com/search?q="),
}

# ========= PERSISTENT CONFIG =========
CONFIG_FILE = os.path.expanduser("~/.dpad_browser_config.json")

DEFAULT_CONFIG = {
    "DEFAULT_ENGINE": "duck_html",
    "REQUEST_TIMEOUT": 15,
    "MAX_HISTORY": 50,
    "USER_AGENT": "Mozilla/5.0",
    "STORE_FILE": os.path.expanduser("~/.dpad_browser.json"),
    "LOG_FILE": os.path.expanduser("~/.dpad_browser.log"),
}


def load_config(path=None):
    path = path or CONFIG_FILE
    if not os.path.exists(path):
        return DEFAULT_CONFIG.copy()

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("ignoring unreadable config %s: %s", path, e)
        return DEFAULT_CONFIG.copy()

    cfg = DEFAULT_CONFIG.copy()
    if not isinstance(data, dict):
        return cfg
    for k in DEFAULT_CONFIG:
        if k in data:
            cfg[k] = data[k]

    if cfg["DEFAULT_ENGINE"] not in SEARCH_ENGINES:
        logger.warning("unknown search engine %r, using default", cfg["DEFAULT_ENGINE"])
        cfg["DEFAULT_ENGINE"] = DEFAULT_CONFIG["DEFAULT_ENGINE"]
    return cfg


def search_url(engine):
    return SEARCH_ENGINES.get(engine, SEARCH_ENGINES["duck_html"])[1]
