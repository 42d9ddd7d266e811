"""文件托管 - Catbox 上传与媒体下载"""

import logging
import os

import httpx

logger = logging.getLogger(__name__)

CATBOX_API = "https://catbox.moe/user/api.php"


class UploadError(Exception):
    """上传失败"""

    def __init__(self, message: str, response_body: str | None = None):
        super().__init__(message)
        self.response_body = response_body


class CatboxUploader:
    """把本地文件上传到 Catbox，返回永久链接"""

    def __init__(self, conf: dict | None = None, client: httpx.AsyncClient | None = None):
        conf = conf or {}
        self.api = conf.get("api") or CATBOX_API
        self.userhash = conf.get("userhash") or ""
        self.timeout = float(conf.get("timeout", 60))
        self.client = client or httpx.AsyncClient()

    async def upload_file(self, path: str) -> str:
        """上传文件

        Raises:
            UploadError: 接口返回的不是链接
            httpx.HTTPError: 网络或状态码错误
        """
        data = {"reqtype": "fileupload"}
        if self.userhash:
            data["userhash"] = self.userhash

        with open(path, "rb") as fp:
            files = {"fileToUpload": (os.path.basename(path), fp)}
            resp = await self.client.post(self.api, data=data, files=files, timeout=self.timeout)
        resp.raise_for_status()

        url = resp.text.strip()
        if not url.startswith("http"):
            raise UploadError("Catbox 未返回链接", response_body=resp.text)
        logger.info(f"上传完成: {url}")
        return url

    async def download_to_file(self, url: str, path: str) -> int:
        """流式下载到本地文件，返回写入的字节数"""
        written = 0
        async with self.client.stream("GET", url, timeout=self.timeout, follow_redirects=True) as resp:
            resp.raise_for_status()
            with open(path, "wb") as fp:
                async for chunk in resp.aiter_bytes():
                    fp.write(chunk)
                    written += len(chunk)
        return written

    async def close(self) -> None:
        await self.client.aclose()
