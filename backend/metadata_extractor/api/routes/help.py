"""Static usage instructions"""
from fastapi import APIRouter

router = APIRouter(tags=["help"])

HELP_CONTENT = {
    "title": "Usage Instructions",
    "sections": [
        {
            "title": "How to Use the Metadata Extractor",
            "content": "Select/upload a file or paste a public URL. The tool accepts PDF (.pdf) "
                       "and Word (.docx) files up to 100 MB.",
        },
        {
            "title": "What it Does",
            "content": "It finds all figures, tables, images, equations, and maps/graphs in your "
                       "document and generates alternative text, keywords, and a taxonomy "
                       "classification for each.",
        },
        {
            "title": "Selecting a Region",
            "content": "Turn on selection mode, drag a rectangle over any part of a PDF page and "
                       "click \"Generate\" to add a single asset for that region.",
        },
        {
            "title": "Editing Workflow",
            "content": "After extraction, you can edit any generated field directly in the results "
                       "table. Click the \"Regenerate\" button for a fresh suggestion on a specific item.",
        },
        {
            "title": "Token Transparency",
            "content": "Each extraction consumes tokens from your monthly cap. The number of tokens "
                       "used is shown after the extraction and is tracked in your usage logs.",
        },
        {
            "title": "Exporting Your Data",
            "content": "When ready, click \"Export CSV\" to download all extracted metadata as a CSV "
                       "file, ready for your publisher workflow.",
        },
        {
            "title": "Admin Note",
            "content": "If your token cap is reached, tool execution will be disabled. Please contact "
                       "your administrator to request a top-up.",
        },
    ],
}


@router.get("/help")
async def get_help():
    """Usage instructions shown in the help panel"""
    return HELP_CONTENT
