import logging
from re import Pattern
from typing import Dict, Optional

import sublime
import sublime_plugin
from sublime import Edit, Region

from .progressive import (
    OPTION_KEYS,
    FixedStep,
    Options,
    Span,
    Step,
    locate_adjacent,
    parse_step,
    process_batch,
    resolve_options,
)

SETTINGS_FILE = "Progressive.sublime-settings"
DEFAULT_STEP = "100"

log = logging.getLogger(__name__)

step_cache: Dict[bool, str] = {}


class ProgressiveNumberCommand(sublime_plugin.TextCommand):
    def is_enabled(self) -> bool:
        return not self.view.is_read_only()

    def options(
        self,
        skip_first_number: Optional[bool],
        allow_zero_length_selection: Optional[bool],
    ) -> Options:
        package = sublime.load_settings(SETTINGS_FILE)
        view_settings = self.view.settings()
        defaults = {
            key: view_settings.get(key, package.get(key, False)) for key in OPTION_KEYS
        }
        return resolve_options(
            defaults, skip_first_number, allow_zero_length_selection
        )

    def substr(self, span: Span) -> str:
        return self.view.substr(Region(span.begin, span.end))

    def resolve_caret(self, span: Span, pattern: Pattern) -> Optional[Span]:
        line = self.view.line(span.begin)
        found = locate_adjacent(
            self.view.substr(line), span.begin - line.begin(), pattern
        )
        if found is None:
            return None
        return Span(line.begin() + found[0], line.begin() + found[1])

    def renumber(
        self,
        edit: Edit,
        step: Step,
        skip_first_number: Optional[bool] = None,
        allow_zero_length_selection: Optional[bool] = None,
    ) -> bool:
        buf = self.view
        spans = [Span(region.begin(), region.end()) for region in buf.sel()]
        options = self.options(skip_first_number, allow_zero_length_selection)
        result = process_batch(
            spans,
            self.substr,
            lambda span: self.resolve_caret(span, step.pattern),
            step,
            options,
        )
        log.debug(
            "%r over %d selections: %d edits, reference %r",
            step,
            len(spans),
            len(result.edits),
            result.reference.value,
        )
        if not result.changed:
            sublime.status_message("No numbers to renumber")
            return False

        for span, text in reversed(result.edits):
            buf.replace(edit, Region(span.begin, span.end), text)
        return True


class ProgressiveIncrementCommand(ProgressiveNumberCommand):
    def run(
        self,
        edit: Edit,
        delta: int = 1,
        skip_first_number: Optional[bool] = None,
        allow_zero_length_selection: Optional[bool] = None,
    ) -> None:
        self.renumber(
            edit, FixedStep(delta), skip_first_number, allow_zero_length_selection
        )


class ProgressiveDecrementCommand(ProgressiveNumberCommand):
    def run(
        self,
        edit: Edit,
        delta: int = 1,
        skip_first_number: Optional[bool] = None,
        allow_zero_length_selection: Optional[bool] = None,
    ) -> None:
        self.renumber(
            edit, FixedStep(-delta), skip_first_number, allow_zero_length_selection
        )


class ProgressiveIncrementByInputCommand(ProgressiveNumberCommand):
    decrement = False

    def input(self, args):
        if "step" not in args:
            return StepInputHandler(
                step_cache.get(self.decrement, DEFAULT_STEP), self.decrement
            )

    def input_description(self) -> str:
        return "Decrement by" if self.decrement else "Increment by"

    def run(
        self,
        edit: Edit,
        step,
        skip_first_number: Optional[bool] = None,
        allow_zero_length_selection: Optional[bool] = None,
    ) -> None:
        if (parsed := parse_step(step, self.decrement)) is None:
            sublime.status_message(f"Not a usable step: {step!r}")
            return
        step_cache[self.decrement] = str(step).strip()
        self.renumber(edit, parsed, skip_first_number, allow_zero_length_selection)


class ProgressiveDecrementByInputCommand(ProgressiveIncrementByInputCommand):
    decrement = True


class StepInputHandler(sublime_plugin.TextInputHandler):
    def __init__(self, initial_text: str, decrement: bool) -> None:
        self._initial_text = initial_text
        self._decrement = decrement

    def initial_text(self) -> str:
        return self._initial_text

    def placeholder(self) -> str:
        return "10, -2 or 0.5"

    def preview(self, text: str) -> str:
        if (step := parse_step(text, self._decrement)) is None:
            return "Enter a non zero number"
        return step.describe()

    def validate(self, text: str) -> bool:
        return parse_step(text, self._decrement) is not None
