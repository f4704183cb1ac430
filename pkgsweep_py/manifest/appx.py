import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

MANIFEST_FILE = "AppxManifest.xml"
FOUNDATION_NS = "http://schemas.microsoft.com/appx/manifest/foundation/windows10"


def read_manifest_display_name(install_location: Optional[str]) -> Optional[str]:
    """
    Reads the display name from a package's AppxManifest.xml.

    Args:
        install_location: The package's install directory.

    Returns:
        The manifest display name, or None if it cannot be read.
    """
    if not install_location:
        return None

    manifest_path = Path(install_location) / MANIFEST_FILE
    try:
        root = ET.parse(manifest_path).getroot()
    except (OSError, ET.ParseError) as e:
        logger.debug(f"Could not read manifest {manifest_path}: {e}")
        return None

    if root.tag != f"{{{FOUNDATION_NS}}}Package":
        logger.debug(f"Unexpected root element in {manifest_path}: {root.tag}")
        return None

    display_name = root.find(
        f"{{{FOUNDATION_NS}}}Properties/{{{FOUNDATION_NS}}}DisplayName"
    )
    if display_name is None or display_name.text is None:
        logger.debug(f"No DisplayName element in {manifest_path}")
        return None
    return display_name.text.strip()
