"""Tests for the component logger."""

import json

from colorama import Fore

from dorgu.utils import logger as logger_module
from dorgu.utils.logger import DorguLogger, set_log_level


class TestDorguLogger:
    def test_structured_line(self, capsys):
        log = DorguLogger("Resolver", log_level="DEBUG")
        log.log_structured(level="DEBUG", message="Merged layers", extra={"layers": 5})
        err = capsys.readouterr().err
        assert "Resolver" in err
        assert "Merged layers layers=5" in err

    def test_level_filtering(self, capsys):
        log = DorguLogger("Generator", log_level="WARNING")
        log.debug("hidden")
        log.warning("shown", document="persona.yaml")
        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown document=persona.yaml" in err

    def test_console_disabled(self, capsys):
        DorguLogger("CLI", log_to_console=False).error("quiet")
        assert capsys.readouterr().err == ""

    def test_json_mode(self, capsys, monkeypatch):
        monkeypatch.setattr(logger_module.config, "LOG_STRUCTURED_JSON", True, raising=False)
        DorguLogger("Validator").warning("Rule failed", rule="check_image")
        line = capsys.readouterr().err.strip()
        payload = json.loads(line[line.index("{"):])
        assert payload["component"] == "Validator"
        assert payload["rule"] == "check_image"

    def test_component_colors(self):
        log = DorguLogger("Base")
        assert log._get_color("PersonaEnricher") == Fore.MAGENTA
        assert log._get_color("CLI") == Fore.LIGHTCYAN_EX
        assert log._get_color("SomethingElse") == Fore.WHITE

    def test_set_log_level_reaches_existing_loggers(self, capsys):
        log = DorguLogger("OutputWriter", log_level="WARNING")
        try:
            set_log_level("DEBUG")
            log.debug("now visible")
        finally:
            set_log_level("WARNING")
        assert "now visible" in capsys.readouterr().err
