"""
Prompt construction: a fixed system prompt plus a kind-specific instruction
wrapped around the serialized log corpus.
"""

from __future__ import annotations

from worklog.types import PromptPair, SummaryKind

SYSTEM_PROMPT = "你是一个专业的工作日志分析助手，擅长总结工作内容并提出见解。"

_INSTRUCTIONS = {
    SummaryKind.WEEKLY: (
        "对以下工作日志进行周总结，分析工作内容、成果和存在的问题，提出改进建议。"
    ),
    SummaryKind.MONTHLY: (
        "对以下工作日志进行月度总结，总结月度工作重点、成果和存在的问题，"
        "提炼经验教训并提出下月工作建议。"
    ),
    SummaryKind.QUARTERLY: (
        "对以下工作日志进行季度总结，分析季度目标完成情况、主要项目进展、成果和存在的问题，"
        "提出下季度规划建议。"
    ),
    SummaryKind.CUSTOM: (
        "对以下指定时间范围内的工作日志进行总结，分析关键工作内容、成果和经验教训。"
    ),
}


def build_prompt(kind: SummaryKind, title: str, corpus: str) -> PromptPair:
    """
    Build the system/user prompt pair for a summary.

    The user prompt is the kind-specific instruction, the title, then the
    serialized corpus. Pure string formatting.
    """
    parts = [_INSTRUCTIONS[kind]]
    if title.strip():
        parts.append(f"标题：{title.strip()}")
    parts.append(corpus)
    return PromptPair(system=SYSTEM_PROMPT, user="\n\n".join(parts))
