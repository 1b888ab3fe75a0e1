"""
Gallery Page - browse, search and open images
"""
import streamlit as st

from fracturelab import config
from fracturelab.state import GalleryState, ReviewState
from fracturelab.services.annotation import DataGateway, GatewayError, ImageGallery, SORT_OPTIONS
from fracturelab.pages.review import get_app_state, get_gateway, request_image

COLUMNS = 5

SORT_LABELS = {
    "newest": "Newest first",
    "oldest": "Oldest first",
    "updated": "Recently updated",
    "filename": "File name",
}


def get_gallery_state() -> GalleryState:
    """Get gallery state from session state"""
    return st.session_state.gallery_state


def render_gallery_filters(gateway: DataGateway, gallery: ImageGallery):
    """Render search, dataset filter and sort controls"""
    col1, col2, col3 = st.columns([2, 1, 1])

    with col1:
        term = st.text_input("Search by file name", value=gallery.search_term, key="gallery_search")
        if term != gallery.search_term:
            gallery.set_search(term)

    with col2:
        datasets = gateway.list_datasets()
        names = ["All datasets"] + [d.dataset_name for d in datasets]
        current = next((d.dataset_name for d in datasets if d.id == gallery.dataset_id), "All datasets")
        selected = st.selectbox("Dataset", names, index=names.index(current), key="gallery_dataset")
        dataset_id = next((d.id for d in datasets if d.dataset_name == selected), None)
        if dataset_id != gallery.dataset_id:
            gallery.set_dataset(dataset_id)

    with col3:
        sort_by = st.selectbox(
            "Sort",
            list(SORT_OPTIONS),
            index=list(SORT_OPTIONS).index(gallery.sort_by),
            format_func=lambda option: SORT_LABELS[option],
            key="gallery_sort",
        )
        if sort_by != gallery.sort_by:
            gallery.set_sort(sort_by)


def render_gallery_grid(gallery: ImageGallery, label_state: ReviewState):
    """Render the current page of thumbnails"""
    images = gallery.current_page()
    if not images:
        st.info("No images match the current filters.")
        return

    for start in range(0, len(images), COLUMNS):
        cols = st.columns(COLUMNS)
        for col, image in zip(cols, images[start:start + COLUMNS]):
            with col:
                st.image(image.url, width=config.THUMBNAIL_WIDTH)
                st.caption(image.file_name)
                if st.button("Open", key=f"gallery_open_{image.id}"):
                    request_image(label_state, image)
                    get_app_state().current_page = "Label"
                    st.rerun()


def render_gallery_pagination(gallery: ImageGallery):
    """Render page navigation controls"""
    col1, col2, col3 = st.columns([1, 2, 1])

    with col1:
        if st.button("Prev", disabled=gallery.page <= 1, key="gallery_prev"):
            gallery.prev_page()
            st.rerun()

    with col2:
        st.markdown(
            f"<div style='text-align: center; padding-top: 5px;'><strong>Page {gallery.page} of {gallery.total_pages}</strong></div>",
            unsafe_allow_html=True
        )

    with col3:
        if st.button("Next", disabled=gallery.page >= gallery.total_pages, key="gallery_next"):
            gallery.next_page()
            st.rerun()


def render_gallery_page():
    """Main gallery page render function"""
    state = get_gallery_state()
    gateway = get_gateway()

    st.title("Gallery")

    try:
        state.gallery.images = gateway.list_images()
        render_gallery_filters(gateway, state.gallery)
    except GatewayError as e:
        st.error(f"Could not load images: {e}")
        return

    # Keep the page in range after the image list changed
    state.gallery.go_to(state.gallery.page)

    st.caption(f"{len(state.gallery.filtered())} image(s)")
    render_gallery_grid(state.gallery, st.session_state.label_state)

    st.divider()
    render_gallery_pagination(state.gallery)
