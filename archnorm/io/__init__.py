"""Input adapters that produce raw trees for the normalizers."""

from .xml_loader import ARRAY_TAGS, load_xml, load_xml_file  # noqa: F401
