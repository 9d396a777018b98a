"""LaTeX macro definitions used by rendered output.

Every ``\\FT...`` macro the renderer emits is defined here so that a
document including ``LATEX_PREAMBLE`` compiles with pdfLaTeX or LuaLaTeX.
Documents may redefine any of them to restyle the output.
"""

from __future__ import annotations

LATEX_PREAMBLE = r"""
\usepackage{xcolor}
\usepackage{graphicx}

% Text styling
\providecommand*{\FTSpecialChar}[1]{#1}
\newcommand*{\FTWeightLight}[1]{{\fontseries{l}\selectfont #1}}
\newcommand*{\FTHeight}[2]{\scalebox{#1}{#2}}
\newcommand*{\FTRaise}[2]{\raisebox{#1\baselineskip}{#2}}
\newcommand*{\FTColorBox}[2]{{\setlength{\fboxsep}{0pt}\colorbox[HTML]{#1}{\strut #2}}}

% Underlines (plain and coloured, straight and wavy)
\newcommand*{\FTUnderline}[1]{\underline{#1}}
\newcommand*{\FTColorUnderline}[2]{{\color[HTML]{#1}\underline{\color{.}#2}}}
\newcommand*{\FTUnderwave}[1]{\underline{#1}}
\newcommand*{\FTColorUnderwave}[2]{\FTColorUnderline{#1}{#2}}

% Boxes
\newcommand*{\FTBox}[2]{{%
  \setlength{\fboxsep}{0pt}\setlength{\fboxrule}{#1\fboxrule}%
  \fbox{#2}}}
\newcommand*{\FTColoredBox}[3]{{%
  \setlength{\fboxsep}{0pt}\setlength{\fboxrule}{#1\fboxrule}%
  \fcolorbox[HTML]{#2}{white}{#3}}}

% Line structure
\newcommand*{\FTStrut}[1]{\rule{0pt}{#1\baselineskip}}
\newcommand*{\FTBol}{\leavevmode}
\newcommand*{\FTEol}{\par}

% Code blocks and inline code
\newenvironment{FTCode}{\par\ttfamily\obeyspaces\setlength{\parindent}{0pt}}{\par}
\newcommand*{\FTInlineCode}[1]{{\ttfamily #1}}

% Precomputed inline snippets: \FTDeclareVerb{key}{markup}, \FTVerb{key}
\newcommand*{\FTDeclareVerb}[2]{\expandafter\def\csname FTVerb@#1\endcsname{#2}}
\newcommand*{\FTVerb}[1]{\FTInlineCode{\csname FTVerb@#1\endcsname}}
"""
