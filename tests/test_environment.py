"""Tests for capprobe.environment."""

from __future__ import annotations

import sys
from types import SimpleNamespace
from xml.dom.minidom import Document

from capprobe.environment import PROBE_ELEMENT_TAG, ProbeEnvironment, build_environment


class TestBuildEnvironment:
    def test_defaults_to_main_module_without_document(self) -> None:
        env = build_environment()
        assert env.global_scope is sys.modules.get("__main__")
        assert env.document is None
        assert env.element is None

    def test_explicit_global_scope(self) -> None:
        scope = {"navigator": object()}
        assert build_environment(scope).global_scope is scope

    def test_creates_probe_element_from_document(self) -> None:
        document = Document()
        env = build_environment({}, document)
        assert env.document is document
        assert env.element is not None
        assert env.element.tagName == PROBE_ELEMENT_TAG

    def test_document_without_create_element(self) -> None:
        document = SimpleNamespace()
        env = build_environment({}, document)
        assert env.document is document
        assert env.element is None


class TestProbeEnvironment:
    def test_handles_order(self) -> None:
        env = ProbeEnvironment(global_scope="g", document="d", element="e")
        assert env.handles() == ("g", "d", "e")
