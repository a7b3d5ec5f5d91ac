"""Smoke tests for the CLI in mock mode."""

import pytest

from stay_market.main import main


class TestCli:
    @pytest.mark.parametrize(
        "argv",
        [
            ["--mock", "search", "Chicago, Illinois, USA"],
            ["--mock", "search", "Springfield, Illinois, USA", "--sort", "price", "--asc"],
            ["--mock", "search", "--lat", "not-a-number", "--lng", "-87.6", "--country", "USA"],
            ["--mock", "reservations"],
            ["--mock", "reservations", "--view", "upcoming", "--limit", "1"],
            ["--mock", "dashboard"],
        ],
    )
    def test_commands_exit_cleanly(self, argv: list[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(argv)
        assert exc_info.value.code == 0

    def test_missing_command_is_usage_error(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--mock"])
        assert exc_info.value.code == 2
