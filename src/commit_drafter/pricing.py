"""
Model price lookup for the cost estimate shown after generation.

Prices come from LiteLLM's public price table. The table is cached in
``~/.cache/cmt/model_pricing.json`` for 24 hours. Loading happens on a
background thread started by :class:`PricingCache` so that the network
call overlaps with the LLM request; the result is handed over through a
one-slot queue. Any failure simply means no cost is shown.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


PRICING_URL = "https://raw.githubusercontent.com/BerriAI/litellm/main/model_prices_and_context_window.json"
CACHE_MAX_AGE_SECS = 24 * 60 * 60
FETCH_TIMEOUT_SECS = 10


@dataclass(frozen=True)
class ModelPricing:
    input_cost_per_token: Optional[float] = None
    output_cost_per_token: Optional[float] = None


PricingTable = Dict[str, ModelPricing]


def default_cache_file() -> Path:
    return Path.home() / ".cache" / "cmt" / "model_pricing.json"


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def parse_pricing_data(raw: Dict[str, Any]) -> PricingTable:
    """Keep the entries of the raw table that carry token prices."""
    table: PricingTable = {}
    for key, value in raw.items():
        if key.startswith("sample_") or not isinstance(value, dict):
            continue
        input_cost = _as_float(value.get("input_cost_per_token"))
        output_cost = _as_float(value.get("output_cost_per_token"))
        if input_cost is not None or output_cost is not None:
            table[key] = ModelPricing(input_cost, output_cost)
    return table


def generate_model_keys(provider: str, model: str) -> List[str]:
    """Return the table keys to try for ``model``, most specific first."""
    if provider == "gemini":
        keys = [f"gemini/{model}", f"google/{model}", f"vertex_ai/{model}"]
        if model.endswith("-preview"):
            keys.append(f"gemini/{model[:-len('-preview')]}")
    elif provider == "claude":
        keys = [f"claude/{model}", f"anthropic/{model}", model]
    elif provider == "openai":
        keys = [model, f"openai/{model}"]
    else:
        keys = [model, f"{provider}/{model}"]
    keys.append(model)
    return keys


def _cache_is_fresh(path: Path) -> bool:
    try:
        age = time.time() - path.stat().st_mtime
    except OSError:
        return False
    return age < CACHE_MAX_AGE_SECS


def load_or_fetch_pricing(cache_path: Optional[Path] = None) -> Optional[PricingTable]:
    """Read the cached table or download and cache a fresh one.

    Returns ``None`` when neither works.
    """
    path = cache_path or default_cache_file()
    if _cache_is_fresh(path):
        try:
            return parse_pricing_data(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as exc:
            logger.debug("Ignoring unreadable pricing cache %s: %s", path, exc)

    try:
        response = requests.get(PRICING_URL, timeout=FETCH_TIMEOUT_SECS)
    except requests.RequestException as exc:
        logger.debug("Pricing fetch failed: %s", exc)
        return None
    if response.status_code != 200:
        logger.debug("Pricing fetch returned status %s", response.status_code)
        return None
    try:
        raw = json.loads(response.text)
    except ValueError as exc:
        logger.debug("Pricing data is not valid JSON: %s", exc)
        return None
    if not isinstance(raw, dict):
        return None

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(response.text, encoding="utf-8")
    except OSError as exc:
        logger.debug("Could not write pricing cache %s: %s", path, exc)
    return parse_pricing_data(raw)


def calculate_cost(pricing: ModelPricing, input_tokens: int, output_tokens: int) -> Optional[float]:
    if pricing.input_cost_per_token is None or pricing.output_cost_per_token is None:
        return None
    return pricing.input_cost_per_token * input_tokens + pricing.output_cost_per_token * output_tokens


def format_cost(cost: float) -> str:
    if cost < 0.0001:
        return f"${cost:.6f}"
    if cost < 0.01:
        return f"${cost:.4f}"
    return f"${cost:.2f}"


class PricingCache:
    """Price table loaded in the background.

    The loader thread is started on construction. :meth:`try_get` never
    blocks, :meth:`wait_get` blocks for at most ``timeout`` seconds.
    """

    def __init__(self, cache_path: Optional[Path] = None, start: bool = True) -> None:
        self.cache_path = cache_path
        self._channel: "queue.Queue[Optional[PricingTable]]" = queue.Queue(maxsize=1)
        self._data: Optional[PricingTable] = None
        self._done = False
        self._thread: Optional[threading.Thread] = None
        if start:
            self.start()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._worker, name="cmt-pricing", daemon=True)
        self._thread.start()

    def _worker(self) -> None:
        try:
            table = load_or_fetch_pricing(self.cache_path)
        except Exception as exc:  # the main flow waits on the queue
            logger.debug("Pricing lookup crashed: %s", exc)
            table = None
        self._channel.put(table)

    def _receive(self, block: bool, timeout: Optional[float] = None) -> Optional[PricingTable]:
        if self._done:
            return self._data
        try:
            self._data = self._channel.get(block=block, timeout=timeout)
        except queue.Empty:
            return None
        self._done = True
        return self._data

    def try_get(self) -> Optional[PricingTable]:
        return self._receive(block=False)

    def wait_get(self, timeout: float) -> Optional[PricingTable]:
        return self._receive(block=True, timeout=timeout)

    def get_model_pricing(self, provider: str, model: str) -> Optional[ModelPricing]:
        """Look ``model`` up under the key variants LiteLLM uses."""
        data = self.try_get()
        if not data:
            return None
        for key in generate_model_keys(provider, model):
            pricing = data.get(key)
            if pricing is not None and pricing.input_cost_per_token is not None:
                return pricing
        return None
