"""Tests for studio-orchestrator."""
