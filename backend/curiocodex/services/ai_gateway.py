"""AI enrichment gateway: embeddings, categorization, tags, image analysis.

Embeddings come from a local sentence-transformers model. Everything that
needs text generation goes through the OpenAI client when a key is configured
and falls back to cheap offline behaviour otherwise. Only ``embed`` is allowed
to raise; the generative helpers degrade to ``"Other"`` / ``[]`` / ``None``.
"""
import base64
import json
import logging
import os
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from openai import OpenAI
from sentence_transformers import SentenceTransformer

from ..core.config import Settings, get_settings

logger = logging.getLogger("curiocodex.ai")

CATEGORIES = [
    "Arts & Crafts",
    "Digital Media",
    "Technology",
    "Sports & Fitness",
    "Music",
    "Reading",
    "Gaming",
    "Cooking",
    "Travel",
    "Photography",
    "Collectables",
    "Outdoor Activities",
    "Learning & Education",
    "Other",
]

DEFAULT_CATEGORY = "Other"
MAX_TAGS = 5

_STOPWORDS = {
    "the", "and", "for", "with", "from", "that", "this", "are", "was", "were", "you", "your",
    "have", "has", "had", "not", "but", "all", "any", "can", "our", "out", "its", "into",
    "about", "over", "very", "just", "more", "some", "also", "than", "them", "they", "their",
    "what", "when", "which", "who", "will", "would", "there", "been", "being", "each", "other",
}


def normalize_category(raw: Optional[str], allowed: Sequence[str] = CATEGORIES) -> Optional[str]:
    """Case-insensitive match of ``raw`` against ``allowed``; None if nothing matches."""
    text = (raw or "").strip().strip("\"'.").strip()
    for option in allowed:
        if option.lower() == text.lower():
            return option
    return None


def parse_tags(text: str) -> List[str]:
    tags: List[str] = []
    for tag in (text or "").split(","):
        tag = tag.strip().strip("\"'#.").strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags[:MAX_TAGS]


def keyword_tags(name: str, description: Optional[str]) -> List[str]:
    words = re.findall(r"[a-z0-9][a-z0-9\-]+", f"{name} {description or ''}".lower())
    tags: List[str] = []
    for word in words:
        if len(word) < 3 or word in _STOPWORDS or word in tags:
            continue
        tags.append(word)
    return tags[:MAX_TAGS]


@dataclass
class ImageAnalysis:
    name: str
    description: Optional[str]
    category: Optional[str]


class AIGateway:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        key = self.settings.openai_api_key or os.getenv("OPENAI_API_KEY")
        self.client = OpenAI(api_key=key) if key else None
        self.available = self.client is not None
        self._embedder: SentenceTransformer | None = None

    # -- embeddings -------------------------------------------------------

    def _get_embedder(self) -> SentenceTransformer:
        if self._embedder is None:
            logger.info(f"Loading embedding model {self.settings.embedding_model}")
            self._embedder = SentenceTransformer(self.settings.embedding_model)
        return self._embedder

    def embed(self, text: str) -> List[float]:
        clean = (text or "").strip()
        if not clean:
            raise ValueError("Text cannot be empty")
        vector = self._get_embedder().encode([clean])[0]
        return [float(v) for v in vector]

    # -- text generation --------------------------------------------------

    def _complete(self, prompt: str, max_tokens: int, temperature: float, images: Sequence[str] = ()) -> str:
        if not self.available or not self.client:
            raise RuntimeError("text generation unavailable")
        content: object = prompt
        if images:
            content = [{"type": "text", "text": prompt}] + [
                {"type": "image_url", "image_url": {"url": url}} for url in images
            ]
        completion = self.client.chat.completions.create(  # type: ignore[attr-defined]
            model=self.settings.openai_model,
            messages=[{"role": "user", "content": content}],  # type: ignore[list-item]
            temperature=temperature,
            max_tokens=max_tokens,
        )
        text = completion.choices[0].message.content if completion.choices else ""
        return (text or "").strip()

    def categorize(self, name: str, description: Optional[str]) -> str:
        if not self.available:
            return DEFAULT_CATEGORY
        prompt = (
            f"Categorize this hobby/item into exactly one of these categories: {', '.join(CATEGORIES)}.\n\n"
            f"Name: {name}\nDescription: {description or 'No description provided'}\n\n"
            "Return ONLY the category name, nothing else:"
        )
        try:
            return normalize_category(self._complete(prompt, max_tokens=20, temperature=0.3)) or DEFAULT_CATEGORY
        except Exception as e:
            logger.error(f"Categorization failed for {name!r}: {e}")
            return DEFAULT_CATEGORY

    def categorize_with_custom_categories(
        self,
        name: str,
        description: Optional[str],
        hobby_category: Optional[str],
        custom_categories: Sequence[str],
    ) -> str:
        """Pick one of the hobby's own item categories (or the hobby category)."""
        options = list(custom_categories)
        if hobby_category and hobby_category.strip() and normalize_category(hobby_category, options) is None:
            options.append(hobby_category.strip())
        fallback = (hobby_category or "").strip() or None

        if not self.available:
            text = f"{name} {description or ''}".lower()
            for option in options:
                if option.lower() in text:
                    return option
            return fallback or self.categorize(name, description)

        prompt = (
            f"Choose the best category for this item from this list: {', '.join(options)}.\n\n"
            f"Name: {name}\nDescription: {description or 'No description provided'}\n\n"
            "Return ONLY one category from the list, nothing else:"
        )
        try:
            chosen = normalize_category(self._complete(prompt, max_tokens=20, temperature=0.2), options)
        except Exception as e:
            logger.error(f"Custom categorization failed for {name!r}: {e}")
            chosen = None
        return chosen or fallback or self.categorize(name, description)

    def extract_tags(self, name: str, description: Optional[str]) -> List[str]:
        if not self.available:
            return keyword_tags(name, description)
        prompt = (
            "Extract 3-5 relevant tags/keywords for this hobby/item. "
            "Return only comma-separated tags, no other text.\n\n"
            f"Name: {name}\nDescription: {description or 'No description'}\n\nTags:"
        )
        try:
            return parse_tags(self._complete(prompt, max_tokens=50, temperature=0.5))
        except Exception as e:
            logger.error(f"Tag extraction failed for {name!r}: {e}")
            return []

    def describe_from_name(self, name: str) -> Optional[str]:
        if not self.available:
            return None
        prompt = (
            "Write one short sentence describing this hobby or collectible item. "
            f"Return only the sentence.\n\nName: {name}\n\nDescription:"
        )
        try:
            return self._complete(prompt, max_tokens=60, temperature=0.5) or None
        except Exception as e:
            logger.error(f"Description generation failed for {name!r}: {e}")
            return None

    def analyze_image(
        self,
        data: bytes,
        content_type: str = "image/jpeg",
        hobby_name: Optional[str] = None,
        hobby_category: Optional[str] = None,
    ) -> Optional[ImageAnalysis]:
        """Suggest a name, description and category for a photographed item."""
        if not self.available or not data:
            return None
        data_url = f"data:{content_type or 'image/jpeg'};base64,{base64.b64encode(data).decode()}"
        context = ""
        if hobby_name:
            context = f"The item belongs to the hobby '{hobby_name}'"
            context += f" (category {hobby_category}).\n" if hobby_category else ".\n"
        prompt = (
            f"{context}Look at this photo of an item and extract:\n"
            "1. A concise name for the item (2-5 words)\n"
            "2. A brief description (1-2 sentences)\n"
            f"3. A category from this list: {', '.join(CATEGORIES)}\n\n"
            'Return JSON: {"name": "...", "description": "...", "category": "..."}'
        )
        try:
            raw = self._complete(prompt, max_tokens=200, temperature=0.3, images=[data_url])
            match = re.search(r"\{.*\}", raw, re.DOTALL)
            parsed = json.loads(match.group(0)) if match else {}
        except Exception as e:
            logger.error(f"Image analysis failed: {e}")
            return None
        name = str(parsed.get("name") or "").strip()
        if not name:
            return None
        description = str(parsed.get("description") or "").strip() or None
        return ImageAnalysis(
            name=name,
            description=description,
            category=normalize_category(parsed.get("category")) or DEFAULT_CATEGORY,
        )


ai_gateway = AIGateway()
