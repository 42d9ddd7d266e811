"""消息格式化与外部文件托管"""
