"""Visualizer package - Rich terminal views for orchestration sessions."""

from .session_status import render_session_list, render_session_status

__all__ = [
	"render_session_list",
	"render_session_status",
]
