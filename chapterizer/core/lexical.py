"""Lexical model: tokenization, bigrams, TF-IDF, cosine similarity, TextRank.

WHY: Chapter boundaries are found where the distinctive vocabulary of
one minute of speech stops resembling the next. That needs a
bag-of-words model that behaves identically on every run so
segmentation is reproducible.

HOW: tokenize() normalizes text into lowercase tokens. bigrams() builds
two-token phrases from content words. vectorize() turns N documents into
sparse TF-IDF dicts, counting terms with scikit-learn.
adjacent_similarities() and cosine() compare them with sklearn
cosine_similarity. key_phrases() and title_case() turn a vector into a
chapter title. text_rank() ranks sentences by Jaccard-graph centrality
for chapter summaries.

RULES:
- Tokens shorter than 3 characters and pure-digit tokens are dropped
- Stopwords are removed from unigram terms and from both halves of bigrams
- A term is kept only when its idf factor ln(N/df) exceeds 0.1
- All functions are pure and never raise on empty input
"""

from __future__ import annotations

import re
from typing import Dict, FrozenSet, List, Sequence, Tuple

import numpy as np
from sklearn.feature_extraction import DictVectorizer
from sklearn.feature_extraction.text import CountVectorizer
from sklearn.metrics.pairwise import cosine_similarity

STOPWORDS: FrozenSet[str] = frozenset({
    "the", "and", "that", "this", "with", "for", "are", "was", "were", "been",
    "have", "has", "had", "not", "but", "what", "all", "can", "her", "his",
    "from", "they", "will", "one", "its", "also", "just", "more", "about",
    "would", "there", "their", "which", "could", "other", "than", "then",
    "these", "some", "them", "into", "only", "your", "when", "very", "most",
    "over", "such", "after", "know", "like", "going", "right", "think",
    "really", "want", "well", "here", "look", "make", "come", "how", "did",
    "get", "got", "say", "said", "because", "way", "still", "being", "those",
    "where", "back", "does", "take", "much", "many", "through", "before",
    "should", "each", "between", "must", "same", "thing", "things", "even",
    "every", "doing", "something", "anything", "nothing", "everything",
    "need", "let", "see", "yeah", "yes", "okay", "actually", "gonna", "kind",
    "sort", "mean", "basically", "literally", "stuff", "pretty", "little",
    "whole", "sure", "probably", "maybe", "guess", "though", "enough",
    "around", "might", "quite", "able", "always", "never", "already", "again",
    "another", "talking", "talk", "people", "called", "start", "started",
    "point", "work", "working", "time", "lot", "part",
})

MINOR_WORDS: FrozenSet[str] = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "by", "with", "vs",
})

MIN_IDF = 0.1
BIGRAM_BOOST = 1.5

_NON_WORD_RE = re.compile(r"[^\w\s'-]")
_DIGITS_RE = re.compile(r"^\d+$")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")

TFIDFVector = Dict[str, float]


def tokenize(text: str) -> List[str]:
    """Lowercase, strip punctuation (keeping apostrophes and hyphens), split."""
    cleaned = _NON_WORD_RE.sub(" ", text.lower())
    return [t for t in cleaned.split() if len(t) > 2 and not _DIGITS_RE.match(t)]


def bigrams(tokens: Sequence[str]) -> List[str]:
    """Adjacent content-word pairs joined by a single space."""
    phrases: List[str] = []
    for a, b in zip(tokens, tokens[1:]):
        if a in STOPWORDS or b in STOPWORDS:
            continue
        if len(a) > 2 and len(b) > 2:
            phrases.append(a + " " + b)
    return phrases


def _document_terms(text: str) -> List[str]:
    tokens = tokenize(text)
    return [t for t in tokens if t not in STOPWORDS] + bigrams(tokens)


def _weight_matrix(documents: Sequence[str]) -> Tuple[np.ndarray, Dict[str, int]]:
    """Dense (documents x terms) TF-IDF weights and the term -> column map."""
    vectorizer = CountVectorizer(analyzer=_document_terms, lowercase=False)
    counts = vectorizer.fit_transform(documents).toarray().astype(float)
    df = (counts > 0).sum(axis=0)
    idf = np.log(len(documents) / df)
    totals = counts.sum(axis=1, keepdims=True)
    totals[totals == 0] = 1.0
    weights = (counts / totals) * np.where(idf > MIN_IDF, idf, 0.0)
    return weights, vectorizer.vocabulary_


def vectorize(documents: Sequence[str]) -> List[TFIDFVector]:
    """Compute one sparse TF-IDF vector per document.

    WHY: Topic shifts show up as changes in distinctive vocabulary; terms
    that occur in (nearly) every document carry no signal and are pruned
    by the idf floor.

    HOW: CountVectorizer, driven by the same tokenizer and bigram rule,
    produces the term counts. Term frequency is count / total terms and
    the weight is tf * ln(N / df). Each row is read back into a dict
    whose keys follow the order terms first appear in that document, so
    title tie-breaks do not depend on the vectorizer's sorted vocabulary.

    RULES:
    - Returns [] for no documents; an empty document yields {}
    - Terms with ln(N / df) <= 0.1 are omitted
    """
    if not documents:
        return []
    doc_terms = [_document_terms(d) for d in documents]
    if not any(doc_terms):
        return [{} for _ in documents]

    weights, columns = _weight_matrix(documents)
    vectors: List[TFIDFVector] = []
    for row, terms in zip(weights, doc_terms):
        vec: TFIDFVector = {}
        for term in dict.fromkeys(terms):
            weight = float(row[columns[term]])
            if weight > 0:
                vec[term] = weight
        vectors.append(vec)
    return vectors


def adjacent_similarities(vectors: Sequence[TFIDFVector]) -> List[float]:
    """Cosine similarity of each vector with the one before it.

    Returns len(vectors) - 1 values; a pair involving an empty vector
    scores 0.0.
    """
    if len(vectors) < 2:
        return []
    if not any(vectors):
        return [0.0] * (len(vectors) - 1)
    matrix = DictVectorizer().fit_transform(vectors)
    sims = cosine_similarity(matrix[:-1], matrix[1:])
    return [float(s) for s in np.clip(sims.diagonal(), 0.0, 1.0)]


def cosine(a: TFIDFVector, b: TFIDFVector) -> float:
    """Cosine similarity of two sparse vectors; 0.0 if either norm is zero."""
    return adjacent_similarities([a, b])[0]


def merge_vectors(vectors: Sequence[TFIDFVector]) -> TFIDFVector:
    """Sum term weights across vectors."""
    merged: TFIDFVector = {}
    for vec in vectors:
        for term, weight in vec.items():
            merged[term] = merged.get(term, 0.0) + weight
    return merged


def key_phrases(vector: TFIDFVector, n: int = 5) -> List[str]:
    """Top-n terms by weight, with bigrams boosted as more descriptive."""
    scored = [
        (term, weight * (BIGRAM_BOOST if " " in term else 1.0))
        for term, weight in vector.items()
    ]
    scored.sort(key=lambda item: item[1], reverse=True)
    return [term for term, _ in scored[:n]]


def title_case(phrase: str) -> str:
    """Capitalize each word except minor words that are not first."""
    words = phrase.split(" ")
    out = []
    for i, word in enumerate(words):
        if i > 0 and word in MINOR_WORDS:
            out.append(word)
        else:
            out.append(word[:1].upper() + word[1:])
    return " ".join(out)


def split_sentences(text: str) -> List[str]:
    """Split text on sentence-ending punctuation followed by whitespace."""
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def text_rank(
    sentences: Sequence[str],
    top_n: int = 5,
    iterations: int = 15,
    damping: float = 0.85,
) -> List[Tuple[int, str, float]]:
    """Rank sentences by graph centrality and return the top-n in document order.

    WHY: A chapter summary should quote the sentences that share the most
    vocabulary with the rest of the chapter.

    HOW: Each sentence is a node; edge weight is the Jaccard similarity of
    the stopword-filtered token sets. A damped PageRank runs for a fixed
    number of iterations, then the first two sentences get a 1.3x boost
    and the last two a 1.15x boost.

    RULES:
    - Returns (index, sentence, score) tuples
    - With <= top_n sentences, every sentence is returned with score 1.0
    """
    if len(sentences) <= top_n:
        return [(i, s, 1.0) for i, s in enumerate(sentences)]

    count = len(sentences)
    token_sets = [{t for t in tokenize(s) if t not in STOPWORDS} for s in sentences]

    sims = [[0.0] * count for _ in range(count)]
    for i in range(count):
        for j in range(count):
            if i == j:
                continue
            union = len(token_sets[i] | token_sets[j])
            if union:
                sims[i][j] = len(token_sets[i] & token_sets[j]) / union

    scores = [1.0] * count
    for _ in range(iterations):
        new_scores = [1.0 - damping] * count
        for i in range(count):
            total = sum(sims[i])
            if total <= 0:
                continue
            for j in range(count):
                new_scores[j] += damping * (sims[i][j] / total) * scores[i]
        scores = new_scores

    def _position_boost(idx: int) -> float:
        if idx <= 1:
            return 1.3
        if idx >= count - 2:
            return 1.15
        return 1.0

    ranked = sorted(
        ((i, sentences[i], scores[i] * _position_boost(i)) for i in range(count)),
        key=lambda item: item[2],
        reverse=True,
    )[:top_n]
    ranked.sort(key=lambda item: item[0])
    return ranked
