"""Tests for hookpost."""
