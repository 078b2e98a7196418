import os
import re
import shlex
import subprocess
from concurrent.futures import ThreadPoolExecutor

DEFAULT_FORMATTER = "npx prettier --parser babel-ts"

_SINGLE_TOKEN = re.compile(r"^[A-Za-z_$][\w$.]*$")


def needs_formatting(text) -> bool:
    return bool(text) and not _SINGLE_TOKEN.match(text.strip())


def unwrap_formatted(formatted: str) -> str:
    text = re.sub(r"^type t = ", "", formatted)
    return re.sub(r";\s*$", "", text)


class ExpandedTypeFormatter:
    """Pipes expanded type strings through an external code formatter.

    Results are memoized per input; any formatter failure keeps the input.
    """

    def __init__(self, command=DEFAULT_FORMATTER, cwd=None, max_workers=None, timeout=60):
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        self.cwd = cwd
        self.max_workers = max_workers or min(32, (os.cpu_count() or 1) + 4)
        self.timeout = timeout
        self._cache = {}

    def format_type(self, text: str) -> str:
        if text in self._cache:
            return self._cache[text]
        try:
            result = subprocess.run(
                self.command,
                input=f"type t = {text};",
                capture_output=True,
                text=True,
                check=True,
                cwd=self.cwd,
                timeout=self.timeout,
            )
            formatted = unwrap_formatted(result.stdout) if result.stdout.strip() else text
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            print(f"Unable to format expanded type, keeping it as-is - {e}")
            formatted = text
        self._cache[text] = formatted
        return formatted

    def format_props(self, props):
        targets = [
            prop for prop in props
            if prop["typeInfo"]["kind"] == "reference" and needs_formatting(prop["typeInfo"].get("expanded"))
        ]
        unique = list(dict.fromkeys(prop["typeInfo"]["expanded"] for prop in targets))
        if not unique:
            return props
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            formatted = dict(zip(unique, executor.map(self.format_type, unique)))
        for prop in targets:
            prop["typeInfo"]["expanded"] = formatted[prop["typeInfo"]["expanded"]]
        return props
