from typing import Protocol, Sequence, Tuple
from memorai.logging import logger

EMPTY_PROFILE = "No memories stored yet. Add some memories to generate a profile."

PROFILE_PROMPT = """\
Based on the following collection of memories/notes from a person, create a concise user profile summary. \
Include their interests, expertise, personality traits, and any patterns you notice. \
Be insightful but respectful of privacy. Write in third person.

Memories:
{memories}

Profile summary:"""


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


def build_profile_prompt(texts: Sequence[str]) -> str:
    memories = "\n".join(f"{i}. {text}" for i, text in enumerate(texts, 1))
    return PROFILE_PROMPT.format(memories=memories)


class ProfileSynthesizer:
    def __init__(self, generator: TextGenerator):
        self.generator = generator

    def synthesize(self, texts: Sequence[str]) -> Tuple[str, int]:
        """
        Summarize stored texts into a third-person profile.

        Returns the profile and the number of texts it was built from. With
        no texts the generator is not called.
        """
        count = len(texts)
        if count == 0:
            return EMPTY_PROFILE, 0

        logger.info(f"Generating profile from {count} memories")
        profile = self.generator.generate(build_profile_prompt(texts))
        return profile, count
