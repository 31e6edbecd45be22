"""Built-in stylesheet applied to every generated PDF."""

DEFAULT_STYLES = """
body {
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
  font-size: 14px;
  line-height: 1.6;
  color: #333;
  max-width: 100%;
  padding: 0;
  margin: 0;
}

h1, h2, h3, h4, h5, h6 {
  margin-top: 1.5em;
  margin-bottom: 0.5em;
  font-weight: 600;
  line-height: 1.25;
  color: #1a1a1a;
}

h1 { font-size: 2em; border-bottom: 2px solid #eee; padding-bottom: 0.3em; }
h2 { font-size: 1.5em; border-bottom: 1px solid #eee; padding-bottom: 0.3em; }
h3 { font-size: 1.25em; }
h4 { font-size: 1em; }

p { margin-top: 0; margin-bottom: 1em; }

a { color: #0366d6; text-decoration: none; }

ul, ol { margin-top: 0; margin-bottom: 1em; padding-left: 2em; }
li { margin-bottom: 0.25em; }

code {
  font-family: 'SF Mono', 'Monaco', 'Inconsolata', 'Fira Code', monospace;
  font-size: 0.9em;
  padding: 0.2em 0.4em;
  background-color: #f6f8fa;
  border-radius: 3px;
}

pre {
  font-family: 'SF Mono', 'Monaco', 'Inconsolata', 'Fira Code', monospace;
  font-size: 0.85em;
  padding: 1em;
  background-color: #f6f8fa;
  border-radius: 6px;
  line-height: 1.45;
  white-space: pre-wrap;
  word-wrap: break-word;
}

pre code { background-color: transparent; padding: 0; border-radius: 0; }

table { border-collapse: collapse; width: 100%; margin-bottom: 1em; }
th, td { border: 1px solid #ddd; padding: 8px 12px; text-align: left; }
th { background-color: #f6f8fa; font-weight: 600; }
tr:nth-child(even) { background-color: #fafbfc; }

blockquote {
  margin: 0 0 1em;
  padding: 0.5em 1em;
  border-left: 4px solid #ddd;
  color: #666;
  background-color: #f9f9f9;
}

hr { border: 0; border-top: 1px solid #eee; margin: 2em 0; }

/* Images, including rendered diagrams */
img { max-width: 100%; height: auto; display: block; margin: 1em auto; }

.page-break { page-break-after: always; }
"""
