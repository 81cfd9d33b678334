"""Upload captures over HTTP as multipart form posts."""
import io
import logging
from typing import Dict, Mapping

import requests
from PIL import Image

from .base import ScreenshotProcessor
from .saver import filename_stem

logger = logging.getLogger("HttpUploader")


class HttpUploader(ScreenshotProcessor):
    """POST every capture as a PNG, with the marker metadata as form fields."""

    def __init__(self, url: str, timeout: float = 30) -> None:
        self.url = url
        self.timeout = timeout
        self._session = requests.Session()

    def upload(self, image: Image.Image, metadata: Mapping[str, str]) -> Dict:
        """Upload one image; errors are reported in the returned dict, never raised."""
        buffer = io.BytesIO()
        image.save(buffer, "PNG")
        filename = f"{filename_stem(metadata)}.png"

        try:
            response = self._session.post(
                self.url,
                files={"image": (filename, buffer.getvalue(), "image/png")},
                data=dict(metadata),
                timeout=self.timeout,
            )
            response.raise_for_status()
            return {"status": "success", "filename": filename, "code": response.status_code}

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            return {"status": "error", "error": f"HTTP {status_code}: {e}"}

        except requests.exceptions.Timeout:
            return {"status": "error", "error": f"Upload timed out after {self.timeout}s"}

        except requests.exceptions.ConnectionError:
            return {"status": "error", "error": f"Connection to {self.url} failed"}

        except requests.exceptions.RequestException as e:
            return {"status": "error", "error": str(e)}

    def process(self, image: Image.Image, metadata: Mapping[str, str]) -> None:
        result = self.upload(image, metadata)
        if result["status"] == "success":
            logger.info(f"Uploaded {result['filename']} to {self.url}")
        else:
            logger.error(f"Upload to {self.url} failed: {result['error']}")

    def finish(self) -> None:
        self._session.close()
