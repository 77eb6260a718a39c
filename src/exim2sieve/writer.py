import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def script_filename(name):
    safe = name.replace('/', '_').replace('\\', '_').strip() or "_unnamed"
    return f"{safe}.sieve"


def write_scripts(scripts, dest):
    """Writes each script to ``<dest>/<name>.sieve``. Returns the paths written."""
    dest = Path(dest)
    dest.mkdir(parents=True, exist_ok=True)

    paths = []
    for script in scripts:
        path = dest / script_filename(script.name)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(script.content)
        logger.info("Wrote %s", path)
        paths.append(path)
    return paths
