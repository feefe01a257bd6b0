from justgold.core.storage_utils import MediaStore

PUBLIC_BASE = "https://proj.supabase.co/storage/v1/object/public/assets"


class MockBucket:
    """In-memory stand-in for a Supabase Storage bucket."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.upload_calls: list[dict] = []
        self.remove_calls: list[list[str]] = []
        self.fail_uploads = False
        self.fail_removes: set[str] = set()

    def upload(self, path: str, data: bytes, options: dict | None = None):
        if self.fail_uploads:
            raise RuntimeError("storage unavailable")
        self.upload_calls.append({"path": path, "size": len(data), "options": options or {}})
        self.objects[path] = data
        return {"Key": path}

    def get_public_url(self, path: str) -> str:
        return f"{PUBLIC_BASE}/{path}"

    def remove(self, paths: list[str]):
        self.remove_calls.append(list(paths))
        for path in paths:
            if path in self.fail_removes:
                raise RuntimeError(f"remove failed for {path}")
            self.objects.pop(path, None)
        return [{"name": p} for p in paths]

    @property
    def removed(self) -> list[str]:
        return [p for call in self.remove_calls for p in call]

    def clear_history(self):
        self.upload_calls = []
        self.remove_calls = []


def make_media_store(bucket: MockBucket | None = None) -> MediaStore:
    return MediaStore(bucket or MockBucket(), "assets")
