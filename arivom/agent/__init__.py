# Learning agent, replanner and copilot helpers
from .copilot import LearningCopilot
from .learning_agent import AgentReply, LearningAgent
from .replanner import ReplanResult, inject_remedial_task

__all__ = ["AgentReply", "LearningAgent", "LearningCopilot", "ReplanResult", "inject_remedial_task"]
