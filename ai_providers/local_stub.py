import json
import re
from typing import Optional

from .base import AIProvider

_COUNT = re.compile(r'Generate exactly (\d+) questions')
_CONTENT = re.compile(r'CONTENT:\n(.*?)\n\nINSTRUCTIONS:', re.DOTALL)


class LocalStub(AIProvider):
    """Offline provider: questions are built from the content's own sentences."""
    default_models = ["local-stub"]

    def _sentences(self, text):
        parts = re.split(r'[\.!\?]\s+', text or '')
        return [p.strip() for p in parts if p and len(p.strip().split()) >= 4]

    def generate(self, prompt: str, model: str, timeout: Optional[float] = None) -> str:
        m = _COUNT.search(prompt)
        n = int(m.group(1)) if m else 5
        c = _CONTENT.search(prompt)
        sents = self._sentences(c.group(1) if c else prompt) or ["The provided content is too short to quote"]

        out = []
        for i in range(n):
            s = sents[i % len(sents)]
            words = s.split()
            # sakrij jednu rec i ponudi je medju opcijama
            idx = max(range(len(words)), key=lambda k: len(words[k]))
            answer = words[idx].strip(',;:"\'()')
            blank = " ".join(words[:idx] + ["_____"] + words[idx + 1:])
            distractors = [w.strip(',;:"\'()') for w in words if w.strip(',;:"\'()').lower() != answer.lower()]
            distractors = list(dict.fromkeys(d for d in distractors if d))[:3]
            while len(distractors) < 3:
                distractors.append(f"None of these ({len(distractors) + 1})")
            correct = i % 4
            opts = distractors[:correct] + [answer] + distractors[correct:]
            out.append({
                "question": f"Which word completes the sentence: \"{blank}\"?",
                "options": [f"{'ABCD'[k]}) {o}" for k, o in enumerate(opts)],
                "correctAnswer": "ABCD"[correct],
                "explanation": f"The original text reads: \"{s}\".",
            })
        return json.dumps({"questions": out}, ensure_ascii=False)
