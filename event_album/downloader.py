"""
Bulk download of event photos to a local folder.

Photos are fetched one at a time with a fixed pause between consecutive
requests so that the storage host does not throttle the device. Every URL
is attempted exactly once; a failed photo is recorded and the batch moves
on to the next one.
"""
import logging
import os
import time
from collections import namedtuple
from urllib.parse import unquote, urlsplit

import requests

from event_album import config
from event_album.errors import TransferError

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = 'image.jpg'


class DownloadSummary(namedtuple('DownloadSummary', ['success_count', 'failed_urls'])):

    @property
    def message(self):
        if not self.failed_urls:
            return f"Successfully downloaded all {self.success_count} images!"
        return (
            f"Downloaded {self.success_count} images. "
            f"Failed to download {len(self.failed_urls)} images. Please try again later."
        )


def filename_from_url(url):
    """Percent-decoded last path segment of the URL, safe to use as a local filename."""
    segment = unquote(urlsplit(url).path.rsplit('/', 1)[-1])
    filename = os.path.basename(segment.replace('\\', '/')).replace('\x00', '').lstrip('.')
    if filename != segment:
        logger.warning(f"[SECURITY] Download filename sanitized - url: {url}, original: {segment}, filename: {filename}, operation: filename_from_url")
    return filename or DEFAULT_FILENAME


def unique_local_path(dest_dir, filename):
    """Path under dest_dir that is not taken yet; repeats get ' (n)' before the extension."""
    base, ext = os.path.splitext(filename)
    path = os.path.join(dest_dir, filename)
    counter = 1
    while os.path.exists(path):
        path = os.path.join(dest_dir, f"{base} ({counter}){ext}")
        counter += 1
    return path


def download_image(url, dest_dir, http=None, timeout=None):
    """
    Fetch one photo and save it under dest_dir.

    Raises TransferError on a network failure, a non-2xx response, or a
    response that is not an image.

    Returns:
        Path of the saved file
    """
    http = http or requests
    if timeout is None:
        timeout = config.DOWNLOAD_TIMEOUT_SECONDS

    logger.info(f"[PHOTO_DOWNLOAD] Fetching photo - url: {url}, operation: download_image")
    try:
        response = http.get(url, headers={'Cache-Control': 'no-cache'}, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"[PHOTO_DOWNLOAD] Request failed - url: {url}, error: {str(e)}, operation: download_image")
        raise TransferError(f"Failed to download image: {e}", cause=e, url=url) from e

    if not response.ok:
        message = f"Failed to download image ({response.status_code}): {response.reason}"
        logger.error(f"[PHOTO_DOWNLOAD] {message} - url: {url}, operation: download_image")
        raise TransferError(message, url=url)

    content_type = response.headers.get('Content-Type', '')
    if 'image/' not in content_type:
        logger.error(f"[PHOTO_DOWNLOAD] Invalid image format received - url: {url}, content_type: {content_type}, operation: download_image")
        raise TransferError("Invalid image format received", url=url)

    path = unique_local_path(dest_dir, filename_from_url(url))
    try:
        os.makedirs(dest_dir, exist_ok=True)
        with open(path, 'wb') as f:
            f.write(response.content)
    except OSError as e:
        logger.error(f"[PHOTO_DOWNLOAD] Failed to save photo - url: {url}, path: {path}, error: {str(e)}, operation: download_image")
        raise TransferError(f"Failed to save image: {e}", cause=e, url=url) from e

    logger.info(f"[PHOTO_DOWNLOAD] Successfully downloaded - url: {url}, path: {path}, operation: download_image")
    return path


def download_all(urls, dest_dir, delay=None, http=None, sleep=time.sleep):
    """
    Download every URL in order, pausing ``delay`` seconds between
    consecutive transfers.

    Returns:
        DownloadSummary(success_count, failed_urls), reported once for the
        whole batch
    """
    if delay is None:
        delay = config.DOWNLOAD_DELAY_SECONDS

    urls = list(urls)
    success_count = 0
    failed_urls = []

    session = http or requests.Session()
    try:
        for index, url in enumerate(urls):
            if index:
                sleep(delay)
            try:
                download_image(url, dest_dir, http=session)
                success_count += 1
            except TransferError as e:
                logger.error(f"[PHOTO_DOWNLOAD] Failed to download image from {url}: {e.message}")
                failed_urls.append(url)
    finally:
        if http is None:
            session.close()

    summary = DownloadSummary(success_count, failed_urls)
    logger.info(f"[PHOTO_DOWNLOAD] Batch complete - downloaded: {success_count}, failed: {len(failed_urls)}, operation: download_all")
    return summary
