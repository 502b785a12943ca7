"""领域层模型与协议。

包含：
- models: Message / PromptConfiguration 等统一数据模型。
- conversation: 会话状态快照、周期状态与观察者协议。
- exceptions: 业务异常类型定义。
"""
