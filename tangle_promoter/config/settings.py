import os
from dotenv import load_dotenv

# Load Environment Variables from project root .env
env_path = os.path.join(os.path.dirname(__file__), "../../.env")
load_dotenv(env_path)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # TANGLE PROMOTER CONFIGURATION (.env driven)
    # ═══════════════════════════════════════════════════════════════════

    # Console output off when True (file log keeps everything)
    SILENT_MODE = _env_bool("SILENT_MODE", False)

    # --- Node Pool ---
    # Comma separated URLs or a path to a JSON array of URLs
    IOTA_NODES = os.getenv(
        "IOTA_NODES",
        "https://nodes.thetangle.org:443,https://iotanode.us:443,https://node.iota.moe:443",
    )
    NODE_STRATEGY = os.getenv("NODE_STRATEGY", "round-robin")  # round-robin | random
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))

    # --- Promotion / Reattachment ---
    PROMOTE_DEPTH = int(os.getenv("PROMOTE_DEPTH", "4"))
    REATTACH_DEPTH = int(os.getenv("REATTACH_DEPTH", "3"))
    MIN_WEIGHT_MAGNITUDE = int(os.getenv("MIN_WEIGHT_MAGNITUDE", "14"))

    # Tails attached longer ago than this are below max depth (11 min)
    MAX_DEPTH_WINDOW_MS = int(os.getenv("MAX_DEPTH_WINDOW_MS", str(11 * 60 * 1000)))

    # Pre-finalised zero-value bundle reused for every promotion
    SPAM_BUNDLE_TRYTES = [
        t.strip() for t in os.getenv("SPAM_BUNDLE_TRYTES", "").split(",") if t.strip()
    ]
    SPAM_ADDRESS = "U" * 81

    # --- Paths ---
    DATA_DIR = os.path.abspath(
        os.getenv("DATA_DIR", os.path.join(os.path.dirname(__file__), "../../data"))
    )
    UNCONFIRMED_BUNDLES_PATH = os.getenv(
        "UNCONFIRMED_BUNDLES_PATH", os.path.join(DATA_DIR, "unconfirmed_bundles.json")
    )
    FAILED_REATTACHMENTS_PATH = os.getenv(
        "FAILED_REATTACHMENTS_PATH", os.path.join(DATA_DIR, "failed_reattachments.json")
    )
    CONFIRMED_BUNDLES_PATH = os.getenv(
        "CONFIRMED_BUNDLES_PATH", os.path.join(DATA_DIR, "confirmed_bundles.json")
    )

    LOG_DIR = os.path.abspath(
        os.getenv("LOG_DIR", os.path.join(os.path.dirname(__file__), "../../logs"))
    )
