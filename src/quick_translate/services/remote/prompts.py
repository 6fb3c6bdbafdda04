"""Prompt templates for each remote task."""

JSON_SYSTEM_PROMPT = "You are a helpful assistant. Output JSON only."

TRANSLATE_SYSTEM_PROMPT = (
    "You are a precise translation engine. Do not add, explain, expand, or omit meaning. "
    "Output JSON only."
)

ASK_SYSTEM_PROMPT = """You are a helpful assistant.
- Answer in the same language as the user's question.
- Be concise unless the user asks for detail.
- Use plain text (no JSON)."""

NARRATION_SYSTEM_PROMPT = """You are a driving-friendly narrator.
- Output plain text only (no JSON, no Markdown).
- Make it easy to listen to: short paragraphs, clear transitions.
- If content contains code/URLs/logs, do not read them verbatim unless very short and essential."""

GENERATE_WORD_PROMPT = """你是一个英语学习内容生成器。请生成 1 个英文单词，偏向：计算机/学习/考试词汇（初中/高中/四级/六级/考研/托福/SAT），避免太生僻。
你必须避免重复（如果你看到一个候选词疑似重复，就换一个新词）。
输出必须是严格 JSON（不要 Markdown，不要额外文本），格式如下：
{{"type":"word","front":"WORD","phonetic":"/IPA/","back":"中文释义（简洁，1-2行）","category":"junior|high|cet4|cet6|kaoyan|toefl|sat","exampleEn":"英文例句（尽量计算机/学习场景）","exampleZh":"例句中文翻译"}}
额外要求：
- phonetic 必须是 IPA，形如 /.../
- back 不要包含 IPA（IPA 放 phonetic）
- category 从 [{categories}] 中选 1 个"""

GENERATE_SENTENCE_PROMPT = """你是一个英语学习内容生成器。请生成 1 句英文短句（适合背诵，偏向计算机/学习/职场），并给出中文翻译。
输出必须是严格 JSON（不要 Markdown，不要额外文本），格式如下：
{{"type":"sentence","front":"ENGLISH","back":"中文翻译","category":"junior|high|cet4|cet6|kaoyan|toefl|sat"}}
category 从 [{categories}] 中选 1 个"""

EXAMPLE_PROMPT = """给单词 "{word}" 生成 1 个英文例句（尽量贴近计算机/学习/工作语境），并给出中文翻译。
输出必须是严格 JSON（不要 Markdown，不要额外文本），格式如下：
{{"exampleEn":"...","exampleZh":"..."}}"""

TRANSLATE_PROMPT = """你是严谨翻译器。请把给定文本翻译成{language}。
输出必须是严格 JSON（不要 Markdown，不要额外文本）：
{{"translation":"..."}}

硬性规则（必须遵守）：
1) 只翻译，不解释，不扩展，不补全，不续写，不举例。
2) 不新增原文没有的信息；不改变事实、语气、时态、主语。
3) 原文若是不完整片段/短语/标题，译文也保持片段，不补成完整句。
4) 保留专有名词、数字、URL、代码标记与换行结构（除非直译必需微调）。
5) 不要输出“翻译：/Translation:”等标签。

待翻译文本（仅翻译此段）：
<<<SOURCE>>>
{text}
<<<END_SOURCE>>>"""

LOOKUP_WORD_PROMPT = """你是英语词典。请给单词 "{word}" 提供 IPA 音标 + {language}释义（简洁，1-2 行）。
输出必须是严格 JSON（不要 Markdown，不要额外文本），格式如下：
{{"phonetic":"/IPA/","meaning":"..."}}
要求：
- phonetic 必须是 IPA，形如 /.../
- meaning 不要包含 IPA"""

LOOKUP_DETAILS_PROMPT = """你是英语词典。请给单词 "{word}" 提供：
1) IPA 音标
2) 多种释义（最多 6 个），每条包含词性 pos、释义 meaning、常用频率 freq。

输出必须是严格 JSON（不要 Markdown，不要额外文本），格式如下：
{{"phonetic":"/IPA/","senses":[{{"pos":"n.","meaning":"...","freq":5}}]}}

规则：
- phonetic 必须是 IPA，形如 /.../
- meaning 用 {language}，不要包含 IPA
- freq 取 1-5 的整数，5 最常用
- senses 按 freq 从高到低排序（像有道词典那样先给最常用释义）"""

ASK_PROMPT = """用户问题：
{question}

选中的文字：
<<<SELECTION>>>
{selection}
<<<END_SELECTION>>>

请结合「用户问题」与「选中的文字」给出回复。"""

NARRATION_MODE_HINTS = {
    "clean_summary": """任务：把选中内容改写成“适合开车听”的口播稿。
- 优先讲清楚核心观点、结论、关键步骤/要点。
- 省略或概括：长代码、堆栈、长命令、长 URL、无意义的符号。
- 如果必须提到代码：只保留 1-2 行以内的关键片段，其余用自然语言描述。
- 默认时长：约 1-3 分钟的语音长度（内容太长就概括）。""",
    "code_explain": """任务：把选中代码讲解成“适合开车听”的讲解稿（像你在讲课/讲故事）。
- 先一句话说它“整体做什么”。
- 再按模块/函数/流程讲清楚：输入→处理→输出，关键状态与边界条件。
- 不要逐行朗读代码；最多引用 1-2 行关键代码，其余用自然语言解释。
- 如果代码很长：先讲结构，再讲最重要的 3-6 个点。
- 默认时长：约 2-5 分钟语音长度。""",
}

NARRATION_TRUNCATED_HINT = "注意：输入内容已被截断（只看到部分片段），回答时请注明“可能不完整”。"

NARRATION_PROMPT = """{mode_hint}
{truncate_hint}

选中内容：
<<<SELECTION>>>
{selection}
<<<END_SELECTION>>>

请直接输出口播稿正文（纯文本）。"""


def language_name(target: str) -> str:
    return "中文" if (target or "").lower() == "zh" else "英文"
