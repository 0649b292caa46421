import runner


def _answers(*values):
    queue = list(values)
    return lambda prompt: queue.pop(0)


def test_prompt_choice_maps_numbers_to_names(capsys) -> None:
    names = ["most-flights-by-origin", "carrier-metrics"]
    assert runner.prompt_choice(names, _answers("2")) == "carrier-metrics"
    assert runner.prompt_choice(names, _answers("0")) is None
    assert runner.prompt_choice(names, _answers("9")) == ""
    assert "Invalid choice" in capsys.readouterr().out


def test_prompt_limit_reprompts_until_in_range(capsys) -> None:
    assert runner.prompt_limit(_answers("0", "abc", "101", "25")) == 25
    assert capsys.readouterr().out.count("Please enter a number between 1 and 100.") == 3


def test_prompt_limit_default() -> None:
    assert runner.prompt_limit(_answers(""), default=10) == 10


def test_prompt_required_builds_flags() -> None:
    args = runner.prompt_required("total-flights-on-route", _answers("jfk", "", "lax"))
    assert args == ["--origin", "JFK", "--destination", "LAX"]
    assert runner.prompt_required("most-popular-routes", _answers()) == []
