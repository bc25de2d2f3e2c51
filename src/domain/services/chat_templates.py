"""Chat prompt templates and their system-message capability."""

from enum import Enum

from src.domain.errors import ConfigError


class ChatTemplate(str, Enum):
    """Prompt template families a chat model can be served with."""

    LLAMA_2_CHAT = "llama-2-chat"
    LLAMA_3_CHAT = "llama-3-chat"
    MISTRAL_INSTRUCT = "mistral-instruct"
    MISTRAL_LITE = "mistrallite"
    OPENCHAT = "openchat"
    CODE_LLAMA = "codellama-instruct"
    CODE_LLAMA_SUPER = "codellama-super-instruct"
    HUMAN_ASSISTANT = "human-assistant"
    VICUNA_1_0_CHAT = "vicuna-1.0-chat"
    VICUNA_1_1_CHAT = "vicuna-1.1-chat"
    CHATML = "chatml"
    BAICHUAN_2 = "baichuan-2"
    WIZARD_CODER = "wizard-coder"
    ZEPHYR = "zephyr"
    STABLE_LM_ZEPHYR = "stablelm-zephyr"
    INTEL_NEURAL = "intel-neural"
    DEEPSEEK_CHAT = "deepseek-chat"
    DEEPSEEK_CODER = "deepseek-coder"
    SOLAR_INSTRUCT = "solar-instruct"
    PHI_2_CHAT = "phi-2-chat"
    PHI_2_INSTRUCT = "phi-2-instruct"
    PHI_3_CHAT = "phi-3-chat"
    GEMMA_INSTRUCT = "gemma-instruct"
    OCTOPUS = "octopus"
    EMBEDDING = "embedding"

    @property
    def has_system_prompt(self) -> bool:
        """Whether the template renders a system message."""
        return self not in _NO_SYSTEM_PROMPT

    @classmethod
    def parse(cls, value: "str | ChatTemplate") -> "ChatTemplate":
        """Resolve a template name; unknown names are a configuration error."""
        if isinstance(value, ChatTemplate):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            known = ", ".join(t.value for t in cls)
            raise ConfigError(f"Unknown prompt template {value!r}. Known templates: {known}") from None


_NO_SYSTEM_PROMPT = frozenset(
    {
        ChatTemplate.MISTRAL_INSTRUCT,
        ChatTemplate.MISTRAL_LITE,
        ChatTemplate.OPENCHAT,
        ChatTemplate.HUMAN_ASSISTANT,
        ChatTemplate.SOLAR_INSTRUCT,
        ChatTemplate.PHI_2_CHAT,
        ChatTemplate.PHI_2_INSTRUCT,
        ChatTemplate.PHI_3_CHAT,
        ChatTemplate.GEMMA_INSTRUCT,
        ChatTemplate.DEEPSEEK_CHAT,
        ChatTemplate.OCTOPUS,
        ChatTemplate.EMBEDDING,
    }
)
