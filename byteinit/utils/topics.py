"""
Topic auto-categorization for blog posts.

A fixed lookup table maps each topic to the vocabulary that signals it. A post
is tagged with every topic whose vocabulary shows up in its tags, its title,
or often enough in its body. Dependency-free and deterministic so the same
post always lands in the same topics.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

CONTENT_MATCH_THRESHOLD = 3

AI_TOPIC = "artificial-intelligence"

_AI_PATTERNS = (
    re.compile(r"\bai\b"),
    re.compile(r"\ba\.i\b"),
    re.compile(r"artificial.?intelligence"),
    re.compile(r"\bagi\b"),
    re.compile(r"ai[- ](?:based|powered|driven|enabled)"),
)


@dataclass(frozen=True)
class TopicVocabulary:
    exact_matches: Tuple[str, ...]
    keywords: Tuple[str, ...]
    content_keywords: Tuple[str, ...]
    frameworks: Tuple[str, ...]
    tools: Tuple[str, ...]
    concepts: Tuple[str, ...]


TOPIC_VOCABULARY: Dict[str, TopicVocabulary] = {
    "programming": TopicVocabulary(
        exact_matches=("programming", "coding", "development", "software engineering"),
        keywords=("code", "programming", "algorithm", "software", "git", "debugging"),
        content_keywords=("function", "class", "variable", "loop", "algorithm", "debug", "compile"),
        frameworks=("spring", "django", "laravel", ".net", "ruby on rails"),
        tools=("git", "github", "gitlab", "vscode", "intellij", "eclipse"),
        concepts=("oop", "functional programming", "design patterns", "solid principles", "clean code"),
    ),
    "web-development": TopicVocabulary(
        exact_matches=("web development", "frontend", "backend", "fullstack", "web engineering"),
        keywords=("html", "css", "javascript", "react", "vue", "angular", "node", "express", "web"),
        content_keywords=("component", "api", "server", "client", "browser", "dom", "responsive"),
        frameworks=(
            "react", "vue", "angular", "svelte", "next.js", "nuxt", "gatsby",
            "express", "nest.js", "django", "flask", "laravel", "ruby on rails",
        ),
        tools=(
            "webpack", "vite", "babel", "eslint", "prettier", "npm", "yarn", "pnpm",
            "chrome devtools", "postman", "insomnia",
        ),
        concepts=(
            "responsive design", "spa", "ssr", "ssg", "pwa", "web apis",
            "rest", "graphql", "websockets", "oauth", "jwt",
        ),
    ),
    "machine-learning": TopicVocabulary(
        exact_matches=("machine learning", "ml", "data science", "deep learning"),
        keywords=("ml", "tensorflow", "pytorch", "neural network", "deep learning", "ai"),
        content_keywords=("model", "training", "dataset", "prediction", "classification", "regression"),
        frameworks=(
            "tensorflow", "pytorch", "keras", "scikit-learn", "xgboost",
            "lightgbm", "fastai", "hugging face",
        ),
        tools=(
            "jupyter", "colab", "kaggle", "numpy", "pandas", "matplotlib",
            "seaborn", "opencv", "cuda",
        ),
        concepts=(
            "neural networks", "supervised learning", "unsupervised learning",
            "reinforcement learning", "computer vision", "nlp", "transformers",
        ),
    ),
    AI_TOPIC: TopicVocabulary(
        exact_matches=(
            "artificial intelligence", "ai", "cognitive computing", "artificial-intelligence",
            "a.i.", "a.i", "ai.", "artificial general intelligence", "agi",
        ),
        keywords=(
            "ai", "gpt", "llm", "chatbot", "nlp", "machine learning",
            "neural", "deep learning", "intelligent", "cognitive",
            "ai model", "ai system", "ai-powered", "ai based",
        ),
        content_keywords=(
            "intelligence", "model", "neural", "training", "language", "cognitive",
            "artificial", "intelligent system", "smart algorithm",
        ),
        frameworks=(
            "openai", "langchain", "transformers", "spacy", "nltk",
            "rasa", "dialogflow", "bert", "gpt-3", "gpt-4",
            "palm", "claude", "llama", "stable-diffusion",
        ),
        tools=(
            "chatgpt", "gpt-4", "claude", "stable diffusion", "dall-e",
            "midjourney", "tensorflow", "pytorch", "bard", "copilot",
            "anthropic", "gemini",
        ),
        concepts=(
            "natural language processing", "computer vision", "robotics",
            "expert systems", "knowledge representation", "reasoning",
            "machine intelligence", "neural networks", "deep learning",
        ),
    ),
    "mobile-development": TopicVocabulary(
        exact_matches=("mobile development", "app development", "ios development", "android development"),
        keywords=("android", "ios", "swift", "kotlin", "react native", "flutter", "mobile"),
        content_keywords=("mobile", "app", "screen", "device", "responsive", "native"),
        frameworks=(
            "react native", "flutter", "ionic", "xamarin", "swiftui",
            "jetpack compose", "native android", "native ios",
        ),
        tools=(
            "android studio", "xcode", "vs code", "firebase", "fastlane",
            "app center", "testflight", "expo",
        ),
        concepts=(
            "responsive design", "offline storage", "push notifications",
            "app lifecycle", "mobile security", "performance optimization",
        ),
    ),
    "cloud-computing": TopicVocabulary(
        exact_matches=("cloud", "cloud computing", "devops", "cloud native"),
        keywords=("aws", "azure", "gcp", "docker", "kubernetes", "serverless"),
        content_keywords=("server", "deploy", "scale", "container", "cloud", "infrastructure"),
        frameworks=(
            "terraform", "cloudformation", "ansible", "puppet", "chef",
            "kubernetes", "docker swarm", "istio",
        ),
        tools=(
            "aws cli", "azure cli", "gcloud", "kubectl", "helm",
            "prometheus", "grafana", "jenkins", "gitlab ci",
        ),
        concepts=(
            "iaas", "paas", "saas", "serverless", "microservices",
            "containers", "orchestration", "ci/cd", "devops",
        ),
    ),
    "security": TopicVocabulary(
        exact_matches=("security", "cybersecurity", "infosec", "information security"),
        keywords=("security", "encryption", "authentication", "vulnerability", "hack", "pentest"),
        content_keywords=("secure", "protect", "encrypt", "auth", "token", "vulnerability"),
        frameworks=(
            "spring security", "oauth", "openid connect", "jwt",
            "keycloak", "auth0", "okta",
        ),
        tools=(
            "nmap", "wireshark", "metasploit", "burp suite", "owasp zap",
            "kali linux", "hashcat", "john the ripper",
        ),
        concepts=(
            "encryption", "authentication", "authorization", "zero trust",
            "threat modeling", "penetration testing", "incident response",
        ),
    ),
    "databases": TopicVocabulary(
        exact_matches=("database", "sql", "nosql", "data storage"),
        keywords=("sql", "mysql", "postgresql", "mongodb", "redis", "database"),
        content_keywords=("query", "table", "database", "schema", "index", "join"),
        frameworks=(
            "hibernate", "sequelize", "prisma", "typeorm", "mongoose",
            "sqlalchemy", "entity framework",
        ),
        tools=(
            "mysql workbench", "pgadmin", "mongodb compass", "dbeaver",
            "redis desktop manager", "datagrip",
        ),
        concepts=(
            "acid", "normalization", "indexing", "transactions",
            "sharding", "replication", "cap theorem",
        ),
    ),
}

ALL_TOPICS: Tuple[str, ...] = tuple(TOPIC_VOCABULARY)


def _normalize(text: Optional[str]) -> str:
    return (text or "").lower().replace(".", "")


def _terms(*groups: Iterable[str]) -> List[str]:
    """Normalize vocabulary like the inputs and de-duplicate, keeping order."""
    seen = set()
    out: List[str] = []
    for group in groups:
        for term in group:
            norm = _normalize(term)
            if norm and norm not in seen:
                seen.add(norm)
                out.append(norm)
    return out


def has_ai_terms(text: str) -> bool:
    return any(pattern.search(text) for pattern in _AI_PATTERNS)


def _matches_topic(vocab: TopicVocabulary, title: str, content: str, tags: List[str]) -> bool:
    tag_terms = set(_terms(vocab.exact_matches, vocab.keywords, vocab.frameworks, vocab.tools))
    if any(tag in tag_terms for tag in tags):
        return True

    title_terms = _terms(vocab.keywords, vocab.frameworks, vocab.tools)
    if any(term in title for term in title_terms):
        return True

    content_terms = _terms(vocab.content_keywords, vocab.concepts, vocab.frameworks, vocab.tools)
    hits = sum(1 for term in content_terms if term in content)
    return hits >= CONTENT_MATCH_THRESHOLD


def categorize_topic(title: Optional[str], content: Optional[str], tags: Optional[Iterable[str]] = None) -> List[str]:
    """Return the topics a post belongs to, in table order."""
    norm_title = _normalize(title)
    norm_content = _normalize(content)
    norm_tags = [_normalize(t) for t in (tags or []) if t]

    matched: List[str] = []
    for topic, vocab in TOPIC_VOCABULARY.items():
        if topic == AI_TOPIC and (
            has_ai_terms(norm_title)
            or has_ai_terms(norm_content)
            or any(has_ai_terms(tag) for tag in norm_tags)
        ):
            matched.append(topic)
            continue
        if _matches_topic(vocab, norm_title, norm_content, norm_tags):
            matched.append(topic)
    return matched
