"""
流程编排模块

提供一次会话内从样本提交到交互使用的完整流程编排
"""
from soulscribe.workflow.orchestrator import StudioOrchestrator

__all__ = ["StudioOrchestrator"]
