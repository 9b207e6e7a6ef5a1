from langgraph.graph import StateGraph, END
from .state import ArticleState
from .nodes import draft_article, generate_images


def create_article_graph():
    workflow = StateGraph(ArticleState)

    workflow.add_node("draft_article", draft_article)
    workflow.add_node("generate_images", generate_images)

    workflow.set_entry_point("draft_article")

    # text strictly precedes images
    workflow.add_edge("draft_article", "generate_images")
    workflow.add_edge("generate_images", END)

    return workflow.compile()
