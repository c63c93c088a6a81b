"""Mapping between logical paths and object keys."""


class PathPrefixer:
    """Prepends (and strips) a root prefix to every path sent to the backend.

        Object keys always use forward slashes, so backslashes coming from a
        Windows-style path or prefix are converted before the prefix is applied.
    """

    def __init__(self, prefix: str = "", separator: str = "/"):
        self._separator = separator
        prefix = self._normalize(prefix).strip(separator)
        self._prefix = f"{prefix}{separator}" if prefix else ""

    @property
    def prefix(self) -> str:
        return self._prefix

    def _normalize(self, path: str) -> str:
        path = (path or "").replace("\\", self._separator)
        if self._separator != "/":
            path = path.replace("/", self._separator)
        return path

    def prefix_path(self, path: str) -> str:
        return self._prefix + self._normalize(path).lstrip(self._separator)

    def strip_prefix(self, path: str) -> str:
        path = self._normalize(path)
        if self._prefix and path.startswith(self._prefix):
            path = path[len(self._prefix):]
        return path.lstrip(self._separator)

    def prefix_directory_path(self, path: str) -> str:
        prefixed = self.prefix_path(path).rstrip(self._separator)
        if prefixed == "":
            return ""
        return prefixed + self._separator

    def strip_directory_prefix(self, path: str) -> str:
        return self.strip_prefix(path).rstrip(self._separator)
