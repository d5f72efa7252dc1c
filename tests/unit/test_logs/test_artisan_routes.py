"""
Unit tests for reading a project's routes through artisan.
"""

import json
import subprocess
from unittest.mock import Mock, patch

import pytest

from sentinel_agent.logs import get_routes
from sentinel_agent.models.logs import RouteEntry
from sentinel_agent.validation import RouteListError

RUN = "sentinel_agent.logs.routes.subprocess.run"

ROUTES = [
    {
        "domain": None,
        "method": "GET|HEAD",
        "uri": "users",
        "name": "users.index",
        "action": "App\\Http\\Controllers\\UserController@index",
        "middleware": ["web", "auth"],
    },
    {
        "domain": None,
        "method": "POST",
        "uri": "api/orders",
        "name": None,
        "action": "Closure",
        "middleware": "api",
    },
]


def completed(stdout="", stderr="", returncode=0):
    return Mock(stdout=stdout, stderr=stderr, returncode=returncode)


@pytest.mark.unit
class TestGetRoutes:
    """Test cases for get_routes."""

    @patch(RUN)
    def test_runs_artisan_in_project(self, mock_run, temp_dir):
        """Test artisan is run from the project directory with a timeout."""
        mock_run.return_value = completed(json.dumps(ROUTES))

        routes = get_routes(temp_dir)

        args, kwargs = mock_run.call_args
        assert args[0] == ["php", "artisan", "route:list", "--json"]
        assert kwargs["cwd"] == temp_dir
        assert kwargs["capture_output"] is True
        assert kwargs["timeout"] > 0
        assert [r.uri for r in routes] == ["users", "api/orders"]

    @patch(RUN)
    def test_route_fields(self, mock_run, temp_dir):
        """Test nulls become empty strings and middleware is always a list."""
        mock_run.return_value = completed(json.dumps(ROUTES))

        first, second = get_routes(temp_dir)

        assert first.middleware == ("web", "auth")
        assert first.name == "users.index"
        assert second.name == ""
        assert second.domain == ""
        assert second.to_dict()["middleware"] == ["api"]

    @patch(RUN)
    def test_notices_before_json_are_skipped(self, mock_run, temp_dir):
        """Test leading deprecation output does not break decoding."""
        output = "PHP Deprecated: foo() in [vendor/x.php] on line 3\n" + json.dumps(ROUTES)
        mock_run.return_value = completed(output)

        assert len(get_routes(temp_dir)) == 2

    @patch(RUN)
    def test_empty_route_table(self, mock_run, temp_dir):
        mock_run.return_value = completed("[]")
        assert get_routes(temp_dir) == []

    @patch(RUN)
    def test_nonzero_exit(self, mock_run, temp_dir):
        """Test a failing artisan command raises with its last stderr line."""
        mock_run.return_value = completed(
            stderr="Could not open input file: artisan\n", returncode=1
        )
        with pytest.raises(RouteListError) as exc_info:
            get_routes(temp_dir)
        assert "Could not open input file" in str(exc_info.value)
        assert exc_info.value.project_path == str(temp_dir)

    @pytest.mark.parametrize("stdout", ["", "no json here", "[not json", '{"uri": "users"}'])
    @patch(RUN)
    def test_bad_output(self, mock_run, stdout, temp_dir):
        mock_run.return_value = completed(stdout)
        with pytest.raises(RouteListError):
            get_routes(temp_dir)

    @patch(RUN)
    def test_bad_route_item(self, mock_run, temp_dir):
        mock_run.return_value = completed(json.dumps(["users"]))
        with pytest.raises(RouteListError):
            get_routes(temp_dir)

    @patch(RUN, side_effect=FileNotFoundError("php"))
    def test_php_missing(self, mock_run, temp_dir):
        with pytest.raises(RouteListError) as exc_info:
            get_routes(temp_dir)
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    @patch(RUN, side_effect=subprocess.TimeoutExpired(cmd="php", timeout=1.0))
    def test_timeout(self, mock_run, temp_dir):
        with pytest.raises(RouteListError, match="timed out"):
            get_routes(temp_dir, timeout=1.0)


@pytest.mark.unit
class TestRouteEntry:
    """Test cases for RouteEntry.from_dict."""

    def test_newline_separated_middleware(self):
        """Test older Laravel versions reporting middleware as one string."""
        route = RouteEntry.from_dict({"method": "GET", "uri": "/", "middleware": "web\nauth"})
        assert route.middleware == ("web", "auth")

    def test_rejects_non_object(self):
        with pytest.raises(TypeError):
            RouteEntry.from_dict("GET /")
