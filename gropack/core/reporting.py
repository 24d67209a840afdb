# -*- coding: utf-8 -*-
from __future__ import annotations

import html
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from gropack.config import APP_NAME, APP_VERSION, HASH_ALGO_DEFAULT
from gropack.core.depends import flag_names
from gropack.core.manifest import build_manifest_dict, write_manifest_json
from gropack.models import PackPlanItem, ScheduledFile, ValidationResult


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _esc(s: Any) -> str:
    return html.escape("" if s is None else str(s))


def _group_results(results: List[ValidationResult]) -> Dict[str, List[ValidationResult]]:
    groups = {"ERROR": [], "WARNING": [], "INFO": []}
    for r in results:
        lvl = (r.level or "INFO").upper()
        if lvl not in groups:
            groups[lvl] = []
        groups[lvl].append(r)
    return groups


def build_report_html(
    tool_name: str,
    tool_version: str,
    root: str,
    output: Optional[str],
    flags: List[str],
    standard_dependencies: int,
    scheduled: List[ScheduledFile],
    plan: List[PackPlanItem],
    missing: List[str],
    validation_results: List[ValidationResult],
    hashes_by_src: Optional[Dict[str, str]] = None,
    hash_algo: str = "sha1",
) -> str:
    hashes_by_src = hashes_by_src or {}
    by_relpath = {p.relpath: p for p in plan}

    stored = sum(1 for p in plan if not p.compress)
    groups = _group_results(validation_results)

    css = """
    body { font-family: -apple-system, Segoe UI, Roboto, Arial, sans-serif; margin: 24px; }
    h1 { margin: 0 0 6px 0; }
    .sub { color: #444; margin: 0 0 18px 0; }
    .card { border: 1px solid #ddd; border-radius: 10px; padding: 14px; margin: 12px 0; }
    .row { display: flex; gap: 18px; flex-wrap: wrap; }
    .kv { min-width: 260px; }
    .k { color: #666; font-size: 12px; }
    .v { font-weight: 600; }
    table { width: 100%; border-collapse: collapse; margin-top: 8px; }
    th, td { border-bottom: 1px solid #eee; padding: 8px; text-align: left; vertical-align: top; font-size: 13px; }
    th { background: #fafafa; position: sticky; top: 0; }
    .pill { display: inline-block; padding: 2px 8px; border-radius: 999px; font-size: 12px; font-weight: 700; }
    .err { background: #ffe9e9; color: #8a0000; }
    .warn { background: #fff4d6; color: #7a5200; }
    .info { background: #e9f3ff; color: #003a7a; }
    code { background: #f6f6f6; padding: 1px 4px; border-radius: 6px; }
    .small { font-size: 12px; color: #555; }
    """

    def pill(level: str) -> str:
        lvl = level.upper()
        if lvl == "ERROR":
            return '<span class="pill err">ERROR</span>'
        if lvl == "WARNING":
            return '<span class="pill warn">WARNING</span>'
        return '<span class="pill info">INFO</span>'

    def render_results(level: str, items: List[ValidationResult]) -> str:
        if not items:
            return f"<p class='small'>No {level.lower()}s.</p>"
        rows = []
        for r in items:
            rel = f"<code>{_esc(r.relpath)}</code>" if r.relpath else ""
            rows.append(
                f"<tr>"
                f"<td>{pill(r.level)}</td>"
                f"<td><code>{_esc(r.code)}</code></td>"
                f"<td>{_esc(r.message)} {rel}</td>"
                f"</tr>"
            )
        return (
            "<table>"
            "<thead><tr><th>Level</th><th>Code</th><th>Message</th></tr></thead>"
            "<tbody>"
            + "".join(rows) +
            "</tbody></table>"
        )

    # Scheduled file rows (in acceptance order)
    file_rows = []
    for f in scheduled:
        p = by_relpath.get(f.path)
        if p is None:
            file_rows.append(
                f"<tr>"
                f"<td class='small'>{f.ordinal or ''}</td>"
                f"<td><code>{_esc(f.path)}</code></td>"
                f"<td>{pill('WARNING')} missing</td>"
                f"<td></td><td></td>"
                f"</tr>"
            )
            continue
        h = hashes_by_src.get(p.src)
        hash_cell = f"<code>{_esc(h)}</code>" if h else ""
        file_rows.append(
            f"<tr>"
            f"<td class='small'>{f.ordinal or ''}</td>"
            f"<td><code>{_esc(f.path)}</code></td>"
            f"<td class='small'>{_esc(p.arcname)}</td>"
            f"<td class='small'>{'deflate' if p.compress else 'store'}</td>"
            f"<td class='small'>{hash_cell}</td>"
            f"</tr>"
        )

    missing_list = "".join(
        f"<li><code>{_esc(m)}</code></li>" for m in missing
    ) or "<li class='small'>All files exist.</li>"

    html_out = f"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>{_esc(tool_name)} Report - {_esc(output or root)}</title>
  <style>{css}</style>
</head>
<body>
  <h1>{_esc(tool_name)} - Dependency Report</h1>
  <p class="sub">Generated {_esc(_utc_now())} (UTC) - Tool version {_esc(tool_version)}</p>

  <div class="card">
    <div class="row">
      <div class="kv"><div class="k">Flags</div><div class="v">{_esc(", ".join(flags) or "none")}</div></div>
      <div class="kv"><div class="k">Standard dependencies</div><div class="v">{standard_dependencies}</div></div>
      <div class="kv"><div class="k">Scheduled files</div><div class="v">{len(scheduled)}</div></div>
      <div class="kv"><div class="k">Missing files</div><div class="v">{len(missing)}</div></div>
    </div>
    <div class="row" style="margin-top:10px;">
      <div class="kv" style="min-width:420px;"><div class="k">Game Root</div><div class="v"><code>{_esc(root)}</code></div></div>
      <div class="kv" style="min-width:420px;"><div class="k">Output Archive</div><div class="v"><code>{_esc(output or "-")}</code></div></div>
    </div>
  </div>

  <div class="card">
    <h2>Validation Summary</h2>
    <p class="small">
      {len(groups.get("ERROR", []))} error(s),
      {len(groups.get("WARNING", []))} warning(s),
      {len(groups.get("INFO", []))} info
    </p>

    <h3>Errors</h3>
    {render_results("ERROR", groups.get("ERROR", []))}

    <h3>Warnings</h3>
    {render_results("WARNING", groups.get("WARNING", []))}

    <h3>Info</h3>
    {render_results("INFO", groups.get("INFO", []))}
  </div>

  <div class="card">
    <h2>Packaging Plan</h2>
    <p class="small">Found <b>{len(plan)}</b> file(s), {stored} stored without compression.</p>

    <h3>Files</h3>
    <p class="small">Hash column shows source file {hash_algo} when packed.</p>
    <table>
      <thead>
        <tr>
          <th>#</th>
          <th>Dependency</th>
          <th>Archive entry</th>
          <th>Method</th>
          <th>Hash</th>
        </tr>
      </thead>
      <tbody>
        {''.join(file_rows) if file_rows else '<tr><td colspan="5" class="small">No files scheduled.</td></tr>'}
      </tbody>
    </table>

    <h3>Missing on disk</h3>
    <ul>{missing_list}</ul>
  </div>

</body>
</html>
"""
    return html_out


def write_report_html(html_text: str, report_path: str) -> str:
    p = Path(report_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(html_text, encoding="utf-8")
    return str(p)


def export_run(result, manifest_path: Optional[str] = None, report_path: Optional[str] = None) -> List[str]:
    """Write the manifest and/or HTML report of a finished run; returns written paths."""
    ctx = result.ctx
    if ctx is None:
        raise ValueError("Nothing to export: the run was blocked before scanning")

    common: Dict[str, Any] = dict(
        tool_name=APP_NAME,
        tool_version=APP_VERSION,
        root=ctx.root,
        output=result.output,
        flags=flag_names(ctx.flags),
        standard_dependencies=len(ctx.depends),
        scheduled=ctx.scheduled,
        plan=result.plan,
        missing=result.missing,
        validation_results=result.issues,
        hashes_by_src=result.hashes_by_src,
        hash_algo=HASH_ALGO_DEFAULT,
    )

    written: List[str] = []
    if manifest_path:
        written.append(write_manifest_json(build_manifest_dict(**common), manifest_path))
    if report_path:
        written.append(write_report_html(build_report_html(**common), report_path))
    return written
