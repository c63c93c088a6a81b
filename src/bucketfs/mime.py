import mimetypes
import typing as t


class MimeTypeDetector:
    """Guesses the content type of an object from its name, then its contents."""

    def detect_mime_type_from_path(self, path: str) -> t.Optional[str]:
        mime_type, _ = mimetypes.guess_type(path, strict=False)
        return mime_type

    def detect_mime_type(self, path: str, contents: t.Union[bytes, str, None] = None) -> t.Optional[str]:
        mime_type = self.detect_mime_type_from_path(path)
        if mime_type is not None or not contents:
            return mime_type
        if isinstance(contents, str):
            return "text/plain"
        sample = bytes(contents[:1024])
        if b'\x00' in sample:
            return None
        try:
            sample.decode("utf-8")
        except UnicodeDecodeError as ex:
            # the sample may end in the middle of a multi-byte character
            truncated = len(contents) > len(sample)
            if not truncated or ex.start < len(sample) - 3:
                return None
        return "text/plain"
