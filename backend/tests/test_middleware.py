"""
Student API — Middleware Helper Tests
=====================================

What:  Tests for request-ID resolution and access-log path filtering.
"""

import pytest

from student_api.middleware.logging import is_silent
from student_api.middleware.request_id import resolve_request_id


class TestResolveRequestId:

    @pytest.mark.parametrize("incoming", ["abc123", "req-1.2_3", "A" * 64])
    def test_well_formed_ids_kept(self, incoming):
        assert resolve_request_id(incoming) == incoming

    @pytest.mark.parametrize("incoming", [None, "", "has space", "a\nb", "A" * 65, "ümlaut"])
    def test_other_values_replaced(self, incoming):
        rid = resolve_request_id(incoming)

        assert rid != incoming
        assert len(rid) == 8


class TestSilentPaths:

    @pytest.mark.parametrize("path", ["/health", "/swagger/index.html", "/swagger/doc.json"])
    def test_silent(self, path):
        assert is_silent(path)

    @pytest.mark.parametrize("path", ["/documents", "/document/s1", "/healthz", "/swagger"])
    def test_logged(self, path):
        assert not is_silent(path)
