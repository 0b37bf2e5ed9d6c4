"""
Model definitions for custom MonkeyZero models

Renders Ollama Modelfiles and the chat-format training data template.
"""

import json
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

MONKEYZERO_SYSTEM_PROMPT = """You are MonkeyZero-Mini, an ultra-lightweight coding assistant. You:
- Give concise, practical answers
- Focus on coding problems and solutions
- Use simple, clear language
- Avoid long explanations unless asked
- Prioritize accuracy over verbosity
- Always include working code examples when relevant"""

MONKEYZERO_TEMPLATE = """{{ if .System }}<|system|>
{{ .System }}<|end|>
{{ end }}{{ if .Prompt }}<|user|>
{{ .Prompt }}<|end|>
<|assistant|>
{{ end }}{{ .Response }}"""

SIMPLE_SYSTEM_PROMPT = """You are MonkeyZero-Mini, a professional coding chatbot. You help with legitimate questions only.

Guidelines:
- Provide accurate, tested code solutions
- Focus on security best practices
- Admit uncertainty rather than provide potentially incorrect information
- Maintain professional standards in all interactions

You do not help with:
- Hacking, cracking, or bypassing security measures
- Creating malware, viruses, or harmful software
- Illegal activities or unethical programming practices
- Academic dishonesty or plagiarism tools

If asked for any of these, explain why you cannot help."""


@dataclass
class ModelProfile:
    """A custom model built FROM a base model"""
    name: str
    base_model: str
    system_prompt: str
    # Ordered (name, value) pairs; a name may repeat (e.g. "stop")
    parameters: List[Tuple[str, object]] = field(default_factory=list)
    template: Optional[str] = None

    def render(self) -> str:
        """Render the Modelfile text"""
        lines = [f"FROM {self.base_model}", ""]
        lines.append(f'SYSTEM """{self.system_prompt}"""')
        lines.append("")

        for name, value in self.parameters:
            if isinstance(value, str):
                lines.append(f'PARAMETER {name} "{value}"')
            else:
                lines.append(f"PARAMETER {name} {value}")

        if self.template:
            lines.append("")
            lines.append(f'TEMPLATE """{self.template}"""')

        return "\n".join(lines)


@dataclass
class TrainingExample:
    instruction: str
    input: str
    output: str


MONKEYZERO_MINI = ModelProfile(
    name="monkeyzero-mini",
    base_model="tinyllama",
    system_prompt=MONKEYZERO_SYSTEM_PROMPT,
    parameters=[
        ("temperature", 0.3),
        ("top_p", 0.9),
        ("top_k", 20),
        ("repeat_penalty", 1.1),
        ("num_predict", 300),
        ("stop", "User:"),
        ("stop", "Human:"),
        ("stop", "### Instruction:"),
    ],
    template=MONKEYZERO_TEMPLATE,
)

MONKEYZERO_SIMPLE = ModelProfile(
    name="monkeyzero-simple",
    base_model="phi",
    system_prompt=SIMPLE_SYSTEM_PROMPT,
    parameters=[
        ("temperature", 0.1),
        ("num_predict", 300),
        ("top_p", 0.7),
        ("top_k", 8),
        ("repeat_penalty", 1.3),
        ("stop", "Here's how to hack"),
        ("stop", "To bypass security"),
        ("stop", "This exploit"),
        ("stop", "Malicious code"),
    ],
)

TRAINING_EXAMPLES = [
    TrainingExample(
        instruction="Explain this JavaScript function",
        input="function add(a, b) { return a + b; }",
        output="This function takes two parameters (a, b) and returns their sum. Simple addition function.",
    ),
    TrainingExample(
        instruction="Fix this Python code",
        input="def greet(name)\n    print('Hello ' + name)",
        output="Missing colon and proper string formatting:\n\n```python\ndef greet(name):\n    print(f'Hello {name}')\n```",
    ),
    TrainingExample(
        instruction="What does this CSS do?",
        input=".container { display: flex; justify-content: center; }",
        output="Creates a flexbox container that horizontally centers its child elements.",
    ),
    TrainingExample(
        instruction="Create a simple HTML button",
        input="",
        output="```html\n<button onclick=\"alert('Clicked!')\">Click Me</button>\n```",
    ),
    TrainingExample(
        instruction="Explain async/await",
        input="",
        output=(
            "async/await makes asynchronous code look synchronous. 'async' marks a function "
            "as asynchronous, 'await' pauses execution until a promise resolves."
        ),
    ),
]


def render_training_data(
    system_prompt: str = MONKEYZERO_SYSTEM_PROMPT,
    examples: Optional[List[TrainingExample]] = None,
) -> str:
    """Render examples as chat-format fine-tuning records (JSON)"""
    if examples is None:
        examples = TRAINING_EXAMPLES

    records = []
    for example in examples:
        user = example.instruction
        if example.input:
            user += f"\n\n{example.input}"
        records.append({
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user},
                {"role": "assistant", "content": example.output},
            ]
        })

    return json.dumps(records, indent=2)
