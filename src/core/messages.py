"""User-visible status text in the supported UI languages."""

MESSAGES: dict[str, dict[str, str]] = {
    "zh": {
        "ready": "准备就绪",
        "recording": "正在录音... ({timeout}秒后自动结束)",
        "stopped": "已停止 ({reason})",
        "stopped_keyword": "已停止 (检测到 '{keyword}')",
        "reason_manual": "手动停止",
        "reason_timeout": "超时",
        "no_content": "录音结束 (无内容)",
        "no_speech": "未检测到语音",
        "engine_error": "发生错误: {code}",
        "already_active": "无法启动录音 (可能正在进行中)",
        "capture_unavailable": "当前浏览器不支持语音识别",
        "classifying": "正在识别...",
        "classification_failed": "识别失败: {detail}",
        "searching": "正在查询...",
        "found": "找到 {count} 条记录",
        "no_matches": "未找到匹配",
        "lookup_failed": "查询失败: {detail}",
        "countdown": "{seconds} 秒后自动更新 (可取消)",
        "cancelled": "已取消自动更新，可手动编辑",
        "committing": "正在更新...",
        "updated_items": "已更新 {count} 项物品",
        "updated_habits": "已更新 {count} 项习惯",
        "commit_failed": "更新失败: {detail}",
        "default_view": "准备就绪",
        "deleted": "已删除: {name}",
        "edited": "已保存: {name}",
        "crud_failed": "操作失败: {detail}",
        "meal_plan_ready": "已生成膳食推荐",
        "meal_plan_failed": "推荐失败: {detail}",
    },
    "en": {
        "ready": "Ready",
        "recording": "Recording... (auto-stop in {timeout}s)",
        "stopped": "Stopped ({reason})",
        "stopped_keyword": "Stopped ('{keyword}' detected)",
        "reason_manual": "manual stop",
        "reason_timeout": "timeout",
        "no_content": "Recording ended (no content)",
        "no_speech": "No speech detected",
        "engine_error": "Error: {code}",
        "already_active": "Cannot start recording (already in progress)",
        "capture_unavailable": "Speech recognition is not supported by this client",
        "classifying": "Classifying...",
        "classification_failed": "Classification failed: {detail}",
        "searching": "Searching...",
        "found": "Found {count} records",
        "no_matches": "No matches",
        "lookup_failed": "Lookup failed: {detail}",
        "countdown": "Auto-update in {seconds}s (cancellable)",
        "cancelled": "Auto-update cancelled, editable now",
        "committing": "Updating...",
        "updated_items": "Updated {count} items",
        "updated_habits": "Updated {count} habits",
        "commit_failed": "Update failed: {detail}",
        "default_view": "Ready",
        "deleted": "Deleted: {name}",
        "edited": "Saved: {name}",
        "crud_failed": "Operation failed: {detail}",
        "meal_plan_ready": "Meal plan ready",
        "meal_plan_failed": "Recommendation failed: {detail}",
    },
}

DEFAULT_LANGUAGE = "zh"


def message(key: str, language: str = DEFAULT_LANGUAGE, **params) -> str:
    """Format a catalogue entry, falling back to the default language."""
    catalogue = MESSAGES.get(language, MESSAGES[DEFAULT_LANGUAGE])
    template = catalogue.get(key) or MESSAGES[DEFAULT_LANGUAGE][key]
    return template.format(**params)
