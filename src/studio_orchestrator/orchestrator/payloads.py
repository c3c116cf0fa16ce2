"""Boundary parsing for opaque agent payloads (outputs and handoff context)."""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def parse_payload(raw: Any, label: str = "payload") -> Any:
	"""
	Parse a structured payload, falling back to an empty object.

	Strings are decoded as JSON. Already-decoded values are kept as long as
	they are JSON-serializable. Anything else is replaced with {} and a
	warning is logged; this never raises.

	Args:
		raw: JSON text or a decoded value
		label: What the payload is, for the log message

	Returns:
		The decoded JSON value, or {} when missing or malformed
	"""
	if raw is None:
		return {}

	if isinstance(raw, (bytes, bytearray)):
		try:
			raw = raw.decode("utf-8")
		except UnicodeDecodeError:
			logger.warning(f"Invalid {label} encoding, using empty object")
			return {}

	if isinstance(raw, str):
		if not raw.strip():
			return {}
		try:
			return json.loads(raw)
		except json.JSONDecodeError as e:
			logger.warning(f"Invalid JSON {label}, using empty object: {e}")
			return {}

	try:
		# Round-trip so the stored value shares nothing with the caller's object
		return json.loads(json.dumps(raw))
	except (TypeError, ValueError) as e:
		logger.warning(f"Unserializable {label}, using empty object: {e}")
		return {}
