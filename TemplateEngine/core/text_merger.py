"""
按模式合并被格式切碎的文本片段。

编辑器经常把一个别名拆到多个 Run 里，例如 `${Band` / `.` / `field}`，
逐个片段做正则匹配会漏掉它们。TextMerger 在单个段落内按文档顺序扫描片段：

1. 某个片段包含模式的前两个字面字符（快速预筛）时，它成为合并窗口的起点；
2. 之后的片段依次拼接到累积字符串，每拼一次就做一次完整匹配；
3. 匹配成功后，只合并与匹配区间重叠的片段：从包含匹配起点的片段到
   包含匹配终点的片段，文本写回第一个，其余清空并排队删除；
   匹配起点之前的片段（例如一个从未闭合的 `${`）保持原样；
4. 匹配之后的剩余文本若仍含预筛字符，合并后的片段成为下一个窗口的种子；
5. 整段扫描完毕后才真正把排队的片段从各自的 Run 中删除。

合并不会改变片段顺序，也不会跨段落；从未进入匹配窗口的片段保持原样。
"""

from __future__ import annotations

import re
from typing import Dict, Iterator, List, Optional, Tuple

from ..document.nodes import Node, Paragraph, Run, Text, remove_child, unwrap


class TextSpanGroup:
    """一次合并得到的起点片段集合，保持文档顺序且按 node_id 去重。"""

    def __init__(self) -> None:
        self._fragments: Dict[int, Text] = {}

    def add(self, fragment: Text) -> None:
        self._fragments.setdefault(fragment.node_id, fragment)

    def __iter__(self) -> Iterator[Text]:
        return iter(list(self._fragments.values()))

    def __len__(self) -> int:
        return len(self._fragments)

    def __contains__(self, fragment: object) -> bool:
        return isinstance(fragment, Text) and self._fragments.get(fragment.node_id) is fragment


class TextMerger:
    """
    单段落的模式感知片段合并器。

    参数:
        paragraph: 待处理的段落。
        pattern: 目标正则（字符串形式）。
        trigger: 预筛字符，缺省为去掉反斜杠后的模式前两个字符。
        parents: 父节点登记表，合并时会把每个片段所属的 Run 记入其中。
    """

    def __init__(
        self,
        paragraph: Paragraph,
        pattern: str,
        trigger: Optional[str] = None,
        parents: Optional[Dict[int, Node]] = None,
    ):
        self.paragraph = paragraph
        self.regexp = re.compile(pattern)
        self.trigger = trigger if trigger is not None else pattern.replace("\\", "")[:2]
        self.parents = parents if parents is not None else {}
        self.resulting_texts = TextSpanGroup()
        self._texts_to_remove: Dict[int, Text] = {}
        self._reset_window()

    def merge_matched_texts(self) -> TextSpanGroup:
        for item in self.paragraph.content:
            run = unwrap(item)
            if not isinstance(run, Run):
                continue
            for run_item in run.content:
                fragment = unwrap(run_item)
                if isinstance(fragment, Text):
                    self.parents[fragment.node_id] = run
                    self._handle_text(fragment)

        self._remove_unnecessary_texts()
        return self.resulting_texts

    # ===== 合并窗口 =====

    def _reset_window(self) -> None:
        self._start: Optional[Text] = None
        self._pending: List[Text] = []
        self._accumulated = ""
        self._search_pos = 0

    def _contains_trigger(self, text: str) -> bool:
        return bool(self.trigger) and self.trigger in text

    def _handle_text(self, fragment: Text) -> None:
        if self._start is None and self._contains_trigger(fragment.value):
            self._start = fragment

        if self._start is None:
            return

        self._pending.append(fragment)
        self._accumulated += fragment.value

        # 同一个累积串里可能一次补全了多个别名
        match = self.regexp.search(self._accumulated, self._search_pos)
        while match is not None:
            self._handle_match(match)
            if self._start is None:
                break
            match = self.regexp.search(self._accumulated, self._search_pos)

    def _handle_match(self, match: re.Match) -> None:
        if match.end() == match.start():
            self._search_pos = match.end() + 1
            return

        # 每个窗口片段在累积串中的 [begin, end) 区间
        spans: List[Tuple[Text, int, int]] = []
        offset = 0
        for fragment in self._pending:
            spans.append((fragment, offset, offset + len(fragment.value)))
            offset += len(fragment.value)
        first_idx = next(
            idx for idx, (_, begin, end) in enumerate(spans) if begin <= match.start() < end
        )
        last_idx = next(
            idx for idx, (_, begin, end) in enumerate(spans) if begin < match.end() <= end
        )

        first, first_begin, _ = spans[first_idx]
        last_end = spans[last_idx][2]
        first.value = self._accumulated[first_begin:last_end]
        first.preserve_space = True
        self.resulting_texts.add(first)
        for fragment, _, _ in spans[first_idx + 1:last_idx + 1]:
            fragment.value = ""
            self._texts_to_remove[fragment.node_id] = fragment

        # 窗口从合并后的片段重新开始，之前的片段不再参与
        self._pending = [first] + [fragment for fragment, _, _ in spans[last_idx + 1:]]
        self._accumulated = self._accumulated[first_begin:]
        search_pos = match.end() - first_begin
        if self._contains_trigger(self._accumulated[search_pos:]):
            self._start = first
            self._search_pos = search_pos
        else:
            self._reset_window()

    def _remove_unnecessary_texts(self) -> None:
        for fragment in self._texts_to_remove.values():
            run = self.parents.get(fragment.node_id)
            if run is not None:
                remove_child(run, fragment)


def merge_literal(
    paragraph: Paragraph, literal: str, parents: Optional[Dict[int, Node]] = None
) -> TextSpanGroup:
    """按字面字符串合并片段，用于剥离 `##band=...` 这类声明标记。"""
    if not literal:
        return TextSpanGroup()
    merger = TextMerger(paragraph, re.escape(literal), trigger=literal[:2], parents=parents)
    return merger.merge_matched_texts()


__all__ = ["TextSpanGroup", "TextMerger", "merge_literal"]
