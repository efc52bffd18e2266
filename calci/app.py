#!/usr/bin/env python3
"""
Calci: Scientific Calculator (Tkinter)

- Light/Dark theme (remembered) • history panel with export • memory M+/M−/MR/MC
- Main keypad and advanced keypad (Tab to switch)
- Left-to-right operator chaining, degree-based trig, factorial,
  ∫x² (trapezoidal) and d/dx x² (central difference) two-phase keys
- Keyboard: 0-9 . + - * / = Enter Esc Backspace Tab

The window only renders state and forwards events; every calculation goes
through ``CalculatorSession``.
"""

from __future__ import annotations

import logging
import sys
import tkinter as tk
from dataclasses import dataclass
from tkinter import filedialog, messagebox
from tkinter import font as tkfont
from typing import Callable, Dict, List, Optional, Tuple

from calci.config import Settings, setup_logging
from calci.engine import Mode
from calci.keymap import dispatch, map_key
from calci.operations import Operator, format_number
from calci.session import CalculatorSession
from calci.store import EXPORT_FILENAME, JsonFileStore, export_history

log = logging.getLogger(__name__)

# ============================ Small UI helpers ==============================

def _hex_to_rgb(h: str) -> tuple[int,int,int]:
    h = h.lstrip("#"); return tuple(int(h[i:i+2],16) for i in (0,2,4))
def _rgb_to_hex(r:int,g:int,b:int) -> str: return f"#{r:02x}{g:02x}{b:02x}"
def _mix(c1:str,c2:str,t:float)->str:
    r1,g1,b1=_hex_to_rgb(c1); r2,g2,b2=_hex_to_rgb(c2)
    return _rgb_to_hex(round(r1+(r2-r1)*t),round(g1+(g2-g1)*t),round(b1+(b2-b1)*t))

class Tooltip:
    def __init__(self, widget: tk.Widget, text: str) -> None:
        self.widget=widget; self.text=text; self.tip: Optional[tk.Toplevel]=None
        if text: widget.bind("<Enter>", self._show, add="+"); widget.bind("<Leave>", self._hide, add="+")
    def _show(self,_e=None)->None:
        if self.tip or not self.text: return
        self.tip=tk.Toplevel(self.widget.winfo_toplevel()); self.tip.wm_overrideredirect(True)
        x=self.widget.winfo_rootx()+self.widget.winfo_width()//2
        y=self.widget.winfo_rooty()+self.widget.winfo_height()+8
        self.tip.wm_geometry(f"+{x}+{y}")
        tk.Label(self.tip,text=self.text,bg="#111",fg="#fff",padx=6,pady=3,bd=0,font=("Segoe UI",9)).pack()
    def _hide(self,_e=None)->None:
        if self.tip: self.tip.destroy(); self.tip=None

# =============================== Palettes ===================================

@dataclass
class Palette:
    name:str; bg:str; panel:str; display_bg:str; fg:str; subtle:str
    digit_bg:str; func_bg:str; memory_bg:str; accent:str; border:str; flash:str

LIGHT = Palette("light","#F3F4F6","#FFFFFF","#FFFFFF","#1F2937","#6B7280",
                "#EEF1F7","#E0E7FF","#FCE7F3","#4F46E5","#E5E7EB","#C7D2FE")
DARK  = Palette("dark" ,"#111827","#1F2937","#0B1220","#E5E7EB","#9CA3AF",
                "#374151","#312E81","#500724","#60A5FA","#374151","#1E3A8A")

# Button spec: (label, kind, action, tooltip)
ButtonSpec = Tuple[str, str, Callable[[], None], str]

_MODE_HINTS = {
    Mode.INTEGRATION: "∫ x²: enter upper bound, press ∫ again",
    Mode.DERIVATIVE: "d/dx x²: enter x, press d/dx again",
}

# =============================== Main window ================================

class CalculatorApp(tk.Tk):
    def __init__(self, session: CalculatorSession, settings: Optional[Settings] = None) -> None:
        super().__init__()
        self.session = session
        self.settings = settings or Settings(); self.settings.validate()
        self.title("Calci"); self.minsize(420, 560)
        self.palette: Palette = DARK if session.dark_mode else LIGHT
        self._show_history = False
        self._flash_job: Optional[str] = None
        self._flashed: Optional[tk.Button] = None
        self.buttons: Dict[str, tk.Button] = {}

        self._init_fonts(); self._build_ui(); self._build_keypad(); self._apply_palette(); self._refresh()
        self.bind("<Key>", self._on_key)
        log.info("calci started (store=%s)", self.settings.store_path)

    # Fonts
    def _init_fonts(self)->None:
        def choose(*names:str)->str:
            avail=set(tkfont.families())
            for n in names:
                if n in avail: return n
            return "Segoe UI"
        self.fonts={"title":tkfont.Font(family=choose("Segoe UI Semibold","Segoe UI","Arial"), size=14, weight="bold"),
                    "ui":tkfont.Font(family=choose("Segoe UI","Arial"), size=11),
                    "ui_bold":tkfont.Font(family=choose("Segoe UI Semibold","Segoe UI","Arial"), size=12, weight="bold"),
                    "display":tkfont.Font(family=choose("Consolas","Courier New"), size=28),
                    "mono":tkfont.Font(family=choose("Consolas","Courier New"), size=10)}

    # UI
    def _build_ui(self)->None:
        self.root_frame=tk.Frame(self,bd=0); self.root_frame.pack(fill="both",expand=True,padx=12,pady=12)

        self.topbar=tk.Frame(self.root_frame); self.topbar.pack(fill="x")
        self.title_label=tk.Label(self.topbar,text="Calci",font=self.fonts["title"],anchor="w"); self.title_label.pack(side="left")
        self.theme_btn=tk.Button(self.topbar,width=3,relief="flat",command=self.toggle_theme); self.theme_btn.pack(side="right")
        self.keypad_btn=tk.Button(self.topbar,width=4,relief="flat",command=self.toggle_keypad); self.keypad_btn.pack(side="right",padx=(0,6))
        self.hist_btn=tk.Button(self.topbar,text="🕘",width=3,relief="flat",command=self.toggle_history); self.hist_btn.pack(side="right",padx=(0,6))
        Tooltip(self.theme_btn,"Toggle dark mode"); Tooltip(self.keypad_btn,"Switch keypad (Tab)"); Tooltip(self.hist_btn,"Show history")

        self.display_panel=tk.Frame(self.root_frame,bd=1); self.display_panel.pack(fill="x",pady=(10,6))
        self.hint_var=tk.StringVar()
        self.hint=tk.Label(self.display_panel,textvariable=self.hint_var,anchor="w",font=self.fonts["ui"]); self.hint.pack(fill="x",padx=12,pady=(8,0))
        self.display_var=tk.StringVar()
        self.display=tk.Label(self.display_panel,textvariable=self.display_var,anchor="e",font=self.fonts["display"])
        self.display.pack(fill="x",padx=12,pady=(0,4))
        self.status_var=tk.StringVar()
        self.status=tk.Label(self.display_panel,textvariable=self.status_var,anchor="e",font=self.fonts["ui"]); self.status.pack(fill="x",padx=12,pady=(0,8))

        self.area=tk.Frame(self.root_frame); self.area.pack(fill="both",expand=True)
        self.grid_frame=tk.Frame(self.area); self.grid_frame.pack(side="left",fill="both",expand=True)

        # History (hidden until toggled)
        self.right_box=tk.Frame(self.area,width=240)
        self.hist_header=tk.Label(self.right_box,text="History",font=self.fonts["ui_bold"]); self.hist_header.pack(anchor="w",pady=(0,4))
        self.hist_container=tk.Frame(self.right_box,bd=1); self.hist_container.pack(fill="both",expand=True)
        self.history_list=tk.Listbox(self.hist_container,width=32,activestyle="none",bd=0,highlightthickness=0,font=self.fonts["mono"])
        self.history_list.pack(side="left",fill="both",expand=True)
        self.hist_scroll=tk.Scrollbar(self.hist_container,orient="vertical",command=self.history_list.yview)
        self.hist_scroll.pack(side="right",fill="y"); self.history_list.config(yscrollcommand=self.hist_scroll.set)
        self.hist_actions=tk.Frame(self.right_box); self.hist_actions.pack(fill="x",pady=(6,0))
        self.export_btn=tk.Button(self.hist_actions,text="⭳ Export",relief="flat",command=self.export_history); self.export_btn.pack(side="left")
        self.clear_hist_btn=tk.Button(self.hist_actions,text="🧹 Clear",relief="flat",command=self.clear_history); self.clear_hist_btn.pack(side="right")

    def _keypad_rows(self)->List[List[ButtonSpec]]:
        s=self.session
        def ev(fn:Callable,*a)->Callable[[],None]: return lambda: fn(*a)
        digit=lambda d: (str(d),"digit",ev(s.input_digit,d),"")
        op=lambda lab,o,tip="": (lab,"op",ev(s.select_operator,o),tip)
        fn=lambda lab,name,tip="": (lab,"func",ev(s.apply_function,name),tip)
        memory=[("MC","memory",s.memory_clear,"Clear memory"),("MR","memory",s.memory_recall,"Recall memory"),
                ("M+","memory",s.memory_add,"Add to memory"),("M−","memory",s.memory_subtract,"Subtract from memory")]
        pad=[[digit(7),digit(8),digit(9),op("×",Operator.MUL)],
             [digit(4),digit(5),digit(6),op("−",Operator.SUB)],
             [digit(1),digit(2),digit(3),op("+",Operator.ADD)]]
        if s.keypad=="main":
            return [memory,
                    [fn("sin","sin","Sine (degrees)"),fn("cos","cos","Cosine (degrees)"),fn("tan","tan","Tangent (degrees)"),op("xʸ",Operator.POW,"Power")],
                    [fn("log","log","log10"),fn("ln","ln","Natural log"),fn("√","sqrt","Square root"),("x!","func",s.factorial,"Factorial")],
                    [("C","func",s.clear_all,"Clear (Esc)"),("±","func",s.toggle_sign,""),("%","func",s.input_percent,""),op("÷",Operator.DIV)],
                    *pad,
                    [fn("x²","square"),digit(0),(".","digit",s.input_dot,""),("=","equals",s.equals,"Evaluate (Enter)")]]
        return [[("π","func",ev(s.insert_constant,"pi"),""),("e","func",ev(s.insert_constant,"e"),""),fn("eˣ","exp"),op("logₓy",Operator.LOG_BASE,"Log of y in base x")],
                [fn("asin","asin","Arcsine (degrees)"),fn("acos","acos","Arccos (degrees)"),fn("atan","atan","Arctan (degrees)"),fn("|x|","abs")],
                [("∫","calc",s.integral,"∫x² dx: lower bound, ∫, upper bound, ∫"),("d/dx","calc",s.derivative,"d/dx x²: press d/dx, enter x, press d/dx"),fn("x³","cube"),fn("∛","cbrt")],
                [fn("⌊x⌋","floor"),fn("⌈x⌉","ceil"),fn("round","round"),op("mod",Operator.MOD,"Remainder")],
                [("C","func",s.clear_all,"Clear (Esc)"),("±","func",s.toggle_sign,""),fn("1/x","reciprocal"),op("÷",Operator.DIV)],
                *pad,
                [("⌫","func",s.clear_last_char,"Backspace"),digit(0),(".","digit",s.input_dot,""),("=","equals",s.equals,"Evaluate (Enter)")]]

    def _build_keypad(self)->None:
        for w in self.grid_frame.winfo_children(): w.destroy()
        self.buttons.clear(); self._flashed=None
        rows=self._keypad_rows()
        for c in range(4): self.grid_frame.grid_columnconfigure(c, weight=1, uniform="col")
        for r,row in enumerate(rows):
            self.grid_frame.grid_rowconfigure(r, weight=1)
            for c,(label,kind,action,tip) in enumerate(row):
                b=tk.Button(self.grid_frame,text=label,relief="flat",bd=0,
                            font=self.fonts["ui_bold"] if kind in ("op","equals") else self.fonts["ui"],
                            command=lambda l=label,a=action: self._press(l,a))
                b.grid(row=r,column=c,sticky="nsew",padx=3,pady=3,ipady=6)
                b._kind=kind  # type: ignore[attr-defined]
                if tip: Tooltip(b,tip)
                self.buttons[label]=b
        self.keypad_btn.configure(text="f(x)" if self.session.keypad=="main" else "123")

    # Theming
    def _kind_bg(self,kind:str)->str:
        p=self.palette
        return {"digit":p.digit_bg,"memory":p.memory_bg,"op":p.accent,"equals":p.accent}.get(kind,p.func_bg)

    def _style_button(self,b:tk.Button,flash:bool=False)->None:
        p=self.palette; kind=getattr(b,"_kind","func")
        bg=p.flash if flash else self._kind_bg(kind)
        fg="white" if kind in ("op","equals") and not flash else p.fg
        b.configure(bg=bg,fg=fg,activebackground=_mix(bg,p.fg,0.12),activeforeground=fg)

    def _apply_palette(self)->None:
        p=self.palette
        self.configure(bg=p.bg)
        for w in (self.root_frame,self.topbar,self.area,self.grid_frame,self.right_box,self.hist_actions):
            w.configure(bg=p.bg)
        self.title_label.configure(bg=p.bg,fg=p.fg)
        for b in (self.theme_btn,self.keypad_btn,self.hist_btn,self.export_btn,self.clear_hist_btn):
            b.configure(bg=p.panel,fg=p.fg,activebackground=p.func_bg,activeforeground=p.fg)
        self.theme_btn.configure(text=("☀️" if p is DARK else "🌙"))
        self.display_panel.configure(bg=p.display_bg,highlightbackground=p.border,highlightcolor=p.border,highlightthickness=1)
        self.display.configure(bg=p.display_bg,fg=p.fg)
        self.hint.configure(bg=p.display_bg,fg=p.accent)
        self.status.configure(bg=p.display_bg,fg=p.subtle)
        for b in self.buttons.values(): self._style_button(b, flash=b is self._flashed)
        self.hist_header.configure(bg=p.bg,fg=p.fg)
        self.hist_container.configure(bg=p.panel,highlightbackground=p.border,highlightcolor=p.border,highlightthickness=1)
        self.history_list.configure(bg=p.panel,fg=p.fg,selectbackground=p.func_bg,selectforeground=p.fg)

    # Rendering
    def _refresh(self)->None:
        s=self.session
        self.display_var.set(s.display)
        self.hint_var.set(_MODE_HINTS.get(s.mode,""))
        pending=s.state.pending_operator
        parts=[]
        if s.state.accumulator is not None and pending is not None:
            parts.append(f"{format_number(s.state.accumulator)} {pending.value}")
        if s.memory: parts.append(f"M = {format_number(s.memory)}")
        self.status_var.set("   ".join(parts))
        if self.history_list.size()!=len(s.history):
            self.history_list.delete(0,"end")
            for line in s.history: self.history_list.insert("end",line)
            self.history_list.see("end")

    # Last-pressed highlight (cosmetic only)
    def _flash(self,label:str)->None:
        if self._flash_job is not None: self.after_cancel(self._flash_job); self._flash_job=None
        if self._flashed is not None and self._flashed.winfo_exists(): self._style_button(self._flashed)
        self._flashed=self.buttons.get(label)
        if self._flashed is None: return
        self._style_button(self._flashed,flash=True)
        self._flash_job=self.after(self.settings.highlight_ms,self._unflash)

    def _unflash(self)->None:
        self._flash_job=None
        if self._flashed is not None and self._flashed.winfo_exists(): self._style_button(self._flashed)
        self._flashed=None

    # Actions
    def _press(self,label:str,action:Callable[[],None])->None:
        action(); self._refresh(); self._flash(label)

    def toggle_keypad(self)->None:
        self.session.toggle_keypad(); self._build_keypad(); self._apply_palette(); self._refresh()

    def toggle_theme(self)->None:
        self.palette = DARK if self.session.toggle_dark_mode() else LIGHT
        self._apply_palette()

    def toggle_history(self)->None:
        self._show_history = not self._show_history
        if self._show_history: self.right_box.pack(side="right",fill="y",padx=(10,0))
        else: self.right_box.pack_forget()

    def clear_history(self)->None:
        self.session.clear_history(); self._refresh()

    def export_history(self)->None:
        if not self.session.history:
            messagebox.showinfo("Export","History is empty.",parent=self); return
        path=filedialog.asksaveasfilename(parent=self,initialfile=EXPORT_FILENAME,defaultextension=".txt",
                                          filetypes=[("Text files","*.txt"),("All files","*.*")])
        if not path: return
        try: export_history(self.session.history,path)
        except OSError as exc:
            log.error("error exporting history: %s", exc)
            messagebox.showerror("Export",f"Could not write {path}:\n{exc}",parent=self)

    # Keyboard
    _KEY_LABELS = {"equals":"=","clear_all":"C","clear_last_char":"⌫","input_dot":"."}
    _OP_LABELS = {Operator.ADD:"+",Operator.SUB:"−",Operator.MUL:"×",Operator.DIV:"÷"}

    def _on_key(self,event:tk.Event):
        ev=map_key(event.keysym, event.char or "")
        if ev is None: return
        if ev.action=="toggle_keypad": self.toggle_keypad(); return "break"
        dispatch(self.session,ev); self._refresh()
        if ev.action=="input_digit": self._flash(str(ev.args[0]))
        elif ev.action=="select_operator": self._flash(self._OP_LABELS[ev.args[0]])
        else: self._flash(self._KEY_LABELS.get(ev.action,""))
        return "break"

# ============================= Entrypoint ===================================

def main()->int:
    try:
        settings=Settings.from_env()
    except ValueError as exc:
        print(f"calci: invalid configuration: {exc}", file=sys.stderr); return 2
    setup_logging(settings)
    try:
        app=CalculatorApp(CalculatorSession(JsonFileStore(settings.store_path)),settings); app.mainloop(); return 0
    except tk.TclError as exc:
        log.error("cannot start the window: %s", exc); return 1

if __name__=="__main__":
    raise SystemExit(main())
