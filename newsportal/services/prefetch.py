"""Background illustration of articles that have no image yet.

One owned worker with one concurrency slot: jobs are generated strictly one
after another, with an idle delay before a batch starts (so foreground
requests go first) and a pause between jobs to stay under the provider's
rate limit. A url is claimed from the moment it is queued until its job
ends, so the same article is never illustrated twice concurrently.
"""

import contextlib
import logging
import queue
import threading
import time

logger = logging.getLogger(__name__)


class ImagePrefetcher:

    def __init__(self, generate, persist, on_ready=None, idle_delay=2.0,
                 interval=6.0, sleep=time.sleep, context=None):
        self.generate = generate
        self.persist = persist
        self.on_ready = on_ready
        self.idle_delay = idle_delay
        self.interval = interval
        self.sleep = sleep
        self.context = context or contextlib.nullcontext
        self._queue = queue.Queue()
        self._claimed = set()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread = None

    def schedule(self, articles, start=True):
        """Queue every article lacking an image that is not already claimed."""
        added = 0
        with self._lock:
            for article in articles:
                if article.image_url or not article.url or article.url in self._claimed:
                    continue
                self._claimed.add(article.url)
                self._queue.put(article)
                added += 1
        if added:
            logger.debug('[prefetch] queued %d articles', added)
            if start:
                self.start()
        return added

    def is_claimed(self, url):
        with self._lock:
            return url in self._claimed

    def pending(self):
        return self._queue.qsize()

    def _release(self, url):
        with self._lock:
            self._claimed.discard(url)

    def process(self, article):
        """Generate, persist and report one image. Returns the image or None.

        The claim ends with the job either way; a stored image keeps the
        article out of later batches.
        """
        try:
            with self.context():
                image = self.generate(article.title)
                if not image:
                    logger.info('[prefetch] no image for %s', article.url)
                    return None
                if not self.persist(article.url, image):
                    logger.warning('[prefetch] image for %s was not stored', article.url)
                    return None
                if self.on_ready is not None:
                    self.on_ready(article.url, image)
        except Exception:
            logger.exception('[prefetch] image generation failed for %s', article.url)
            return None
        finally:
            self._release(article.url)
        return image

    def run_pending(self):
        """Drain the queue on the calling thread."""
        done = 0
        while True:
            try:
                article = self._queue.get_nowait()
            except queue.Empty:
                return done
            if done:
                self.sleep(self.interval)
            self.process(article)
            done += 1

    # --- Worker thread ---

    def start(self):
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._run, name='image-prefetch', daemon=True,
            )
            self._thread.start()

    def stop(self, timeout=None):
        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _run(self):
        idle = True
        while not self._stop.is_set():
            try:
                article = self._queue.get(timeout=0.5)
            except queue.Empty:
                idle = True
                continue
            self.sleep(self.idle_delay if idle else self.interval)
            idle = False
            if self._stop.is_set():
                break
            self.process(article)
