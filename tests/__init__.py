"""
Tests for assetgraph

This package contains tests for:
- Asset model, graph model and handle tables
- Lowering and raising passes
- Position and density interpreters
- Round-trip properties across the whole pipeline
"""
