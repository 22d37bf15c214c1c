"""orb 核心: 配置、异常、项目清单、自更新与包管理引擎"""
