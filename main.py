from __future__ import annotations
import os
import sys
import subprocess
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core.config import config
from core.logger import get_logger

log = get_logger("main")

UI_ENTRY = ROOT_DIR / "ui" / "app.py"


def verify_environment() -> bool:
    """
    Log how the intake client is configured and catch setups that cannot work.

    Returns:
        False when the UI cannot start (missing entry point or an unusable
        templates directory), True otherwise
    """
    log.info(f"Starting FinSync Intake in '{config.environment}' mode")
    log.info(
        f"Ingestion service: {config.api_base_url} "
        f"(poll every {config.poll_interval_seconds}s, up to {config.poll_max_attempts} checks)"
    )
    ok = True

    if not UI_ENTRY.exists():
        log.error(f"UI app not found at {UI_ENTRY}")
        ok = False

    if config.templates_dir is None:
        log.info(f"Bank templates will be fetched from {config.templates_path}")
    elif not config.templates_dir.is_dir():
        log.error(f"TEMPLATES_DIR {config.templates_dir} is not a directory")
        ok = False
    else:
        count = len(list(config.templates_dir.glob("*.yml")))
        if count == 0:
            log.warning(f"⚠️  No *.yml bank templates in {config.templates_dir}")
        log.info(f"Using {count} local bank template file(s) from {config.templates_dir}")

    if not os.getenv("API_BASE_URL"):
        log.warning(f"⚠️  API_BASE_URL not set, defaulting to {config.api_base_url}")
    if not config.csrf_token:
        log.debug("No CSRF token configured; uploads are sent without X-CSRF-Token")
    return ok


def launch_streamlit(extra_args: list[str]) -> int:
    port = os.getenv("PORT", str(config.app_port))
    command = [
        sys.executable, "-m", "streamlit", "run", str(UI_ENTRY),
        "--server.port", port,
        "--server.headless", "true",
        "--server.maxUploadSize", str(config.max_total_mb),
        *extra_args,
    ]
    log.info(f"Launching Streamlit on port {port}")
    try:
        subprocess.run(command, check=True, cwd=str(ROOT_DIR))
    except KeyboardInterrupt:
        log.info("FinSync Intake stopped by user.")
    except subprocess.CalledProcessError as e:
        log.error(f"Streamlit exited with status {e.returncode}")
        return e.returncode or 1
    return 0


def main() -> None:
    if not verify_environment():
        sys.exit(1)
    sys.exit(launch_streamlit(sys.argv[1:]))


if __name__ == "__main__":
    main()
